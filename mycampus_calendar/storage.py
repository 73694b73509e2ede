"""
Persistent settings for the command-line front end.

This module manages the file:

    ~/.mycampus-calendar/settings.json

It only remembers the last used output folder, so repeated runs can omit
--out. The converter itself never reads or writes settings.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional


SETTINGS_KEY = "last_output_folder"


def _default_settings_path() -> Path:
    """
    Return the default path of settings.json in the user's home directory.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    return Path.home() / ".mycampus-calendar" / "settings.json"


def _read_settings(settings_path: Path) -> dict:
    if not settings_path.exists():
        return {}
    try:
        data = json.loads(settings_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_last_output_folder(path: str | Path | None = None) -> Optional[Path]:
    """
    Load the last used output folder.

    Returns None if the file does not exist, is invalid, or names a folder
    that no longer exists.
    """
    settings_path = Path(path) if path is not None else _default_settings_path()

    folder = _read_settings(settings_path).get(SETTINGS_KEY)
    if not isinstance(folder, str) or not folder.strip():
        return None

    out = Path(folder)
    return out if out.is_dir() else None


def save_last_output_folder(folder: str | Path, path: str | Path | None = None) -> None:
    """
    Remember folder as the last used output folder.

    Other keys already present in the settings file are kept.
    """
    settings_path = Path(path) if path is not None else _default_settings_path()
    settings_path.parent.mkdir(parents=True, exist_ok=True)

    data = _read_settings(settings_path)
    data[SETTINGS_KEY] = str(Path(folder).resolve())

    settings_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

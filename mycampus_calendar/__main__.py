"""
Package entry point.

Allows running the application via:

    python -m mycampus_calendar

This simply forwards execution to mycampus_calendar.cli.main().
"""

from mycampus_calendar.cli import main

if __name__ == "__main__":
    main()

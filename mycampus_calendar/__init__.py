"""
mycampus_calendar: turn a copied MyCampus schedule page into .ics calendars.
"""

from mycampus_calendar.convert import GenerationResult, convert
from mycampus_calendar.parse import parse_schedule

__all__ = ["GenerationResult", "convert", "parse_schedule"]

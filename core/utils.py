"""Utility functions for studylog application."""

from datetime import date


def today_string() -> str:
    """Today's date in the local timezone as YYYY-MM-DD."""
    return date.today().isoformat()


def clean_text(value) -> str:
    """Coerce a cell value to a trimmed string."""
    if value is None:
        return ''
    return str(value).strip()

"""Conversion between stored ISO dates (``YYYY-MM-DD``) and display formats."""

from __future__ import annotations

DATE_FORMATS = ("yyyy/mm/dd", "dd/mm/yyyy", "mm/dd/yyyy", "dd MMM yyyy")

MONTH_NAMES_SHORT = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_date_to_display(iso_date: str, date_format: str) -> str:
    """Render an ISO date in ``date_format``; anything not shaped like ``Y-M-D`` is returned as-is."""

    if not iso_date:
        return ""

    parts = iso_date.split("-")
    if len(parts) != 3:
        return iso_date
    year, month, day = parts

    if date_format == "yyyy/mm/dd":
        return f"{year}/{month}/{day}"
    if date_format == "dd/mm/yyyy":
        return f"{day}/{month}/{year}"
    if date_format == "mm/dd/yyyy":
        return f"{month}/{day}/{year}"
    if date_format == "dd MMM yyyy":
        return f"{day} {_month_name(month)} {year}"
    return iso_date


def parse_date_to_iso(display_date: str, date_format: str) -> str:
    """Inverse of ``format_date_to_display``; malformed input is returned unchanged."""

    if not display_date:
        return ""

    if date_format == "dd MMM yyyy":
        parts = display_date.split(" ")
        if len(parts) != 3:
            return display_date
        day, month_name, year = parts
        month = _month_number(month_name)
    elif date_format in ("yyyy/mm/dd", "dd/mm/yyyy", "mm/dd/yyyy"):
        parts = display_date.split("/")
        if len(parts) != 3:
            return display_date
        if date_format == "yyyy/mm/dd":
            year, month, day = parts
        elif date_format == "dd/mm/yyyy":
            day, month, year = parts
        else:
            month, day, year = parts
    else:
        return display_date

    return f"{year.zfill(4)}-{month.zfill(2)}-{day.zfill(2)}"


def _month_name(month: str) -> str:
    if month.isdigit() and 1 <= int(month) <= 12:
        return MONTH_NAMES_SHORT[int(month) - 1]
    return month


def _month_number(name: str) -> str:
    for index, candidate in enumerate(MONTH_NAMES_SHORT, start=1):
        if candidate.lower() == name.lower():
            return f"{index:02d}"
    return "01"

"""Shared service-layer helper functions."""

from __future__ import annotations

import re
from datetime import UTC, datetime

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def today_iso() -> str:
    """Today's date as YYYY-MM-DD."""
    return datetime.now(UTC).strftime("%Y-%m-%d")


def now_iso() -> str:
    """Current UTC time as standard ISO 8601 (for the event log)."""
    return datetime.now(UTC).isoformat()


def is_iso_date(value: str) -> bool:
    """True if *value* is a real calendar date in YYYY-MM-DD form."""
    if not _DATE_RE.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def is_blank(value: object) -> bool:
    """None, or a string with nothing but whitespace."""
    return value is None or (isinstance(value, str) and not value.strip())

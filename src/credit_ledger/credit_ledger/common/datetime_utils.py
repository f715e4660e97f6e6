from __future__ import annotations

from datetime import date, datetime
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    v = (value or "").strip()
    if not v:
        return None
    return parse_iso_date(v)


def now_local() -> datetime:
    """Current local wall-clock time; services take ``now``/``today`` overrides instead."""
    return datetime.now()


def days_until(target: Optional[date], today: date) -> Optional[int]:
    if target is None:
        return None
    return (target - today).days

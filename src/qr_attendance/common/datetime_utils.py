from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    v = str(value or "").strip()
    if not v:
        return None
    return parse_iso_date(v)


def parse_optional_datetime(value: Optional[str]) -> Optional[datetime]:
    v = str(value or "").strip()
    if not v:
        return None
    try:
        return to_naive_local(datetime.fromisoformat(v))
    except ValueError:
        raise ValidationError(f"Invalid datetime (ISO 8601): {value!r}")


def to_naive_local(value: Optional[datetime]) -> Optional[datetime]:
    """Ledger times are naive server-local; offset-aware input is converted to that."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()

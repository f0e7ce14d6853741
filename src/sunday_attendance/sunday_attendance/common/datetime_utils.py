from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from ..core.exceptions import ValidationError


def parse_iso_date(value: Union[str, date]) -> date:
    """Parse YYYY-MM-DD string into date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Data inválida: {value!r}")


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    if value is None or not str(value).strip():
        return None
    return parse_iso_date(value)


def today() -> date:
    """Current local date.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return date.today()


def now_local() -> datetime:
    return datetime.now()


def previous_sunday(on: date) -> date:
    """Most recent Sunday on or before ``on``."""
    return on - timedelta(days=(on.weekday() + 1) % 7)


def normalize_time(value) -> Optional[time]:
    """Normalize TIME values across connector implementations.

    mysql-connector can return TIME as datetime.time, datetime.timedelta or str.
    """

    if value is None:
        return None
    if isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        total_seconds = int(value.total_seconds()) % 86400
        return time(hour=total_seconds // 3600, minute=(total_seconds % 3600) // 60, second=total_seconds % 60)
    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
        return time(hour=int(parts[0]), minute=int(parts[1]), second=seconds)

    raise TypeError(f"Unsupported TIME value type: {type(value)!r}")


def format_br_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")

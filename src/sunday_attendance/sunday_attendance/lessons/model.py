from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

_SERIES_PATTERN = re.compile(r"^(Q\d+)\s+(\d+)\.")


@dataclass(frozen=True)
class Lesson:
    """Unidade do currículo."""

    lesson_id: int
    name: str
    resource_url: Optional[str] = None
    curriculum_series: Optional[str] = None
    lesson_number: Optional[int] = None
    description: Optional[str] = None
    is_special_event: bool = False


@dataclass(frozen=True)
class LessonDraft:
    name: str
    resource_url: Optional[str] = None
    curriculum_series: Optional[str] = None
    lesson_number: Optional[int] = None
    description: Optional[str] = None
    is_special_event: bool = False


def parse_curriculum(name: str) -> Tuple[Optional[str], Optional[int]]:
    """Extract series and number from names like ``"Q4 1. How Could..."``."""
    match = _SERIES_PATTERN.match((name or "").strip())
    if not match:
        return None, None
    return match.group(1), int(match.group(2))

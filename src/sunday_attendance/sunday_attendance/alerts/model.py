from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Tuple


@dataclass(frozen=True)
class AbsenceAlert:
    """Derived, never persisted."""

    student_id: int
    absence_count: int
    absence_dates: Tuple[date, ...]  # oldest -> newest

    @property
    def first_absence_date(self) -> date:
        return self.absence_dates[0]

    @property
    def last_absence_date(self) -> date:
        return self.absence_dates[-1]

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "absence_count": self.absence_count,
            "absence_dates": [d.isoformat() for d in self.absence_dates],
            "first_absence_date": self.first_absence_date.isoformat(),
            "last_absence_date": self.last_absence_date.isoformat(),
        }

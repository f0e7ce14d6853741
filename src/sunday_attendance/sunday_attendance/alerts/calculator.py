"""Consecutive-absence streaks over a snapshot of attendance rows.

Only dates that carry a record for the student count. A date with any
attended status (present, late, excused) is a present date even when another
service on the same day was marked absent.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from ..attendance.model import DatedAttendance
from ..core.constants import ABSENCE_ALERT_THRESHOLD
from ..core.exceptions import ValidationError
from .model import AbsenceAlert


def attended_by_date(rows: Iterable[DatedAttendance], *, cutoff: Optional[date] = None) -> Dict[int, Dict[date, bool]]:
    """``{student_id: {date: attended}}``; rows on or after ``cutoff`` are dropped."""

    out: Dict[int, Dict[date, bool]] = {}
    for row in rows:
        if cutoff is not None and row.date >= cutoff:
            continue
        days = out.setdefault(row.student_id, {})
        days[row.date] = days.get(row.date, False) or row.status.attended
    return out


def current_streak(days: Dict[date, bool]) -> List[date]:
    """Absent dates from the newest record back to the first attended one, newest first."""

    streak: List[date] = []
    for day in sorted(days, reverse=True):
        if days[day]:
            break
        streak.append(day)
    return streak


def calculate_absence_alerts(
    student_ids: Sequence[int],
    rows: Iterable[DatedAttendance],
    *,
    threshold: int = ABSENCE_ALERT_THRESHOLD,
    cutoff: Optional[date] = None,
) -> List[AbsenceAlert]:
    if int(threshold) <= 0:
        raise ValidationError("O limite de faltas deve ser maior que zero")

    by_student = attended_by_date(rows, cutoff=cutoff)

    alerts: List[AbsenceAlert] = []
    seen: set[int] = set()
    for student_id in student_ids:
        if student_id in seen:
            continue
        seen.add(student_id)

        streak = current_streak(by_student.get(student_id, {}))
        if len(streak) >= int(threshold):
            alerts.append(
                AbsenceAlert(
                    student_id=student_id,
                    absence_count=len(streak),
                    absence_dates=tuple(reversed(streak)),
                )
            )
    return alerts

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence, Union

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import parse_optional_date
from ..common.datetime_utils import today as default_today
from ..core.constants import ABSENCE_ALERT_THRESHOLD
from ..core.exceptions import AbsenceAlertError, DataAccessError, ValidationError
from ..students.repository import StudentRepository
from .calculator import calculate_absence_alerts
from .model import AbsenceAlert

logger = logging.getLogger(__name__)


class AbsenceAlertService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        students: StudentRepository,
        *,
        threshold: int = ABSENCE_ALERT_THRESHOLD,
        today: Callable[[], date] = default_today,
    ):
        self._attendance = attendance
        self._students = students
        self._threshold = int(threshold)
        self._today = today

    def alerts_for_students(
        self,
        student_ids: Sequence[int],
        *,
        threshold: Optional[int] = None,
        cutoff: Union[str, date, None] = None,
    ) -> List[AbsenceAlert]:
        """Students whose latest recorded dates before ``cutoff`` are ``threshold``+ absences in a row.

        ``cutoff`` defaults to today, so the date being marked is never counted.
        """

        threshold = self._threshold if threshold is None else int(threshold)
        if threshold <= 0:
            raise ValidationError("O limite de faltas deve ser maior que zero")
        cutoff_date = parse_optional_date(cutoff) or self._today()

        ids = [int(sid) for sid in student_ids]
        if not ids:
            return []

        try:
            rows = self._attendance.list_dated_before(ids, before=cutoff_date)
        except DataAccessError as e:
            logger.error("Absence alert computation failed: %s", e)
            raise AbsenceAlertError(f"Failed to compute absence alerts: {e}") from e

        return calculate_absence_alerts(ids, rows, threshold=threshold, cutoff=cutoff_date)

    def alerts_for_active_students(
        self,
        *,
        threshold: Optional[int] = None,
        cutoff: Union[str, date, None] = None,
    ) -> List[AbsenceAlert]:
        try:
            students = self._students.list_active(include_visitors=False)
        except DataAccessError as e:
            raise AbsenceAlertError(f"Failed to compute absence alerts: {e}") from e
        ids = [s.student_id for s in students if not s.is_visitor]
        return self.alerts_for_students(ids, threshold=threshold, cutoff=cutoff)

    def alerts_by_student(
        self,
        student_ids: Sequence[int],
        *,
        cutoff: Union[str, date, None] = None,
    ) -> Dict[int, AbsenceAlert]:
        return {a.student_id: a for a in self.alerts_for_students(student_ids, cutoff=cutoff)}

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..common.datetime_utils import now_local
from ..common.datetime_utils import today as default_today
from ..common.search import sort_by_name
from ..common.validators import optional_text
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceStatus, MarkingMethod
from ..core.exceptions import NotFoundError, ValidationError
from ..schedules.repository import ScheduleRepository
from ..schedules.service import ScheduleService
from ..students.repository import StudentRepository
from .marking import MarkingSession
from .model import (
    AttendanceEntry,
    AttendanceRecord,
    AttendanceRecordView,
    AttendanceStats,
    HistoryGroup,
    StudentAttendanceRow,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def calculate_stats(records: Iterable[AttendanceRecordView]) -> AttendanceStats:
    """Status counts among regular students; visitors are counted on their own."""

    counts = {status: 0 for status in AttendanceStatus}
    visitors = 0
    total = 0
    for rec in records:
        total += 1
        if rec.is_visitor:
            if rec.status.attended:
                visitors += 1
            continue
        counts[rec.status] += 1

    return AttendanceStats(
        present=counts[AttendanceStatus.PRESENT],
        absent=counts[AttendanceStatus.ABSENT],
        late=counts[AttendanceStatus.LATE],
        excused=counts[AttendanceStatus.EXCUSED],
        visitors=visitors,
        total=total,
    )


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        schedules: ScheduleRepository,
        students: StudentRepository,
        schedule_service: ScheduleService,
        *,
        now: Callable[[], datetime] = now_local,
        today: Callable[[], date] = default_today,
    ):
        self._attendance = attendance
        self._schedules = schedules
        self._students = students
        self._schedule_service = schedule_service
        self._now = now
        self._today = today

    def existing_entries(self, *, on: date, service_time_id: int) -> List[AttendanceEntry]:
        """Marks already saved for ``(on, service_time_id)``; empty when no schedule exists yet."""

        schedule = self._schedules.get_by_date_and_service(on=on, service_time_id=int(service_time_id))
        if not schedule:
            return []
        return [
            AttendanceEntry(student_id=v.record.student_id, status=v.status, notes=v.record.notes)
            for v in self._attendance.list_by_schedule(schedule.schedule_id)
        ]

    def start_marking(
        self,
        *,
        on: date,
        service_time_id: int,
        method: MarkingMethod = MarkingMethod.SWIPE,
    ) -> MarkingSession:
        """Roster of active regular students plus visitors already saved for the schedule."""

        roster = list(self._students.list_active(include_visitors=False))
        existing = self.existing_entries(on=on, service_time_id=service_time_id)

        known = {s.student_id for s in roster}
        for entry in existing:
            if entry.student_id in known:
                continue
            student = self._students.get_by_id(entry.student_id)
            if student:
                roster.append(student)
                known.add(student.student_id)

        return MarkingSession.start(
            on=on,
            service_time_id=service_time_id,
            students=sort_by_name(roster, key=lambda s: s.name),
            method=method,
            existing=existing,
        )

    def save_marking(self, marking: MarkingSession, *, marked_by: Optional[int]) -> int:
        """Persist a finished marking session.

        On failure the exception propagates and ``marking`` is left untouched so
        the user can retry.
        """

        entries = marking.entries()
        if not entries:
            raise ValidationError("Nenhum aluno foi marcado")

        schedule = self._schedule_service.find_or_create(on=marking.date, service_time_id=marking.service_time_id)
        saved = self._attendance.bulk_save(
            schedule_id=schedule.schedule_id,
            service_time_id=schedule.service_time_id,
            entries=entries,
            marked_by=marked_by,
            marked_at=self._now(),
        )
        marking.complete()
        logger.info("Saved %d attendance record(s) for schedule %s", saved, schedule.schedule_id)
        return saved

    def history(
        self,
        *,
        limit: int = DEFAULT_HISTORY_LIMIT,
        service_time_id: Optional[int] = None,
    ) -> List[HistoryGroup]:
        details = self._schedules.list_details(
            until=self._today(),
            service_time_id=service_time_id,
            limit=max(int(limit), 1),
        )
        if not details:
            return []

        by_schedule: Dict[int, List[AttendanceRecordView]] = {d.schedule_id: [] for d in details}
        for view in self._attendance.list_by_schedules([d.schedule_id for d in details]):
            by_schedule.setdefault(view.record.schedule_id, []).append(view)

        return [
            HistoryGroup(
                schedule=d,
                records=tuple(by_schedule[d.schedule_id]),
                stats=calculate_stats(by_schedule[d.schedule_id]),
            )
            for d in details
        ]

    def edit_record(self, record_id: int, *, status: AttendanceStatus, notes: Optional[str] = None) -> None:
        if not self._attendance.get_by_id(int(record_id)):
            raise NotFoundError("Registro de presença não encontrado")
        if not self._attendance.update_record(int(record_id), status=AttendanceStatus(status), notes=optional_text(notes)):
            raise ValidationError("Falha ao atualizar presença")

    def add_record(
        self,
        *,
        schedule_id: int,
        student_id: int,
        status: AttendanceStatus,
        notes: Optional[str] = None,
        marked_by: Optional[int] = None,
    ) -> AttendanceRecord:
        detail = self._schedule_service.get_detail(schedule_id)
        if not self._students.get_by_id(int(student_id)):
            raise NotFoundError("Aluno não encontrado")
        if any(v.record.student_id == int(student_id) for v in self._attendance.list_by_schedule(detail.schedule_id)):
            raise ValidationError("Aluno já tem presença registrada nesta aula")

        return self._attendance.create_record(
            schedule_id=detail.schedule_id,
            service_time_id=detail.schedule.service_time_id,
            entry=AttendanceEntry(student_id=int(student_id), status=AttendanceStatus(status), notes=optional_text(notes)),
            marked_by=marked_by,
            marked_at=self._now(),
        )

    def delete_record(self, record_id: int) -> None:
        if not self._attendance.delete_record(int(record_id)):
            raise NotFoundError("Registro de presença não encontrado")

    def student_timeline(self, student_id: int) -> List[Tuple[date, List[StudentAttendanceRow]]]:
        """Attendance rows grouped by date, newest date first."""

        grouped: "OrderedDict[date, List[StudentAttendanceRow]]" = OrderedDict()
        for row in self._attendance.list_by_student(int(student_id)):
            grouped.setdefault(row.date, []).append(row)
        return list(grouped.items())

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Callable, List, Optional, Sequence

from ..common.datetime_utils import today as default_today
from ..common.validators import optional_text
from ..core.constants import DEFAULT_UPCOMING_LIMIT
from ..core.enums import AssignmentRole, EventType
from ..core.exceptions import DataAccessError, NotFoundError, ValidationError
from .model import Schedule, ScheduleAssignment, ScheduleDetail, ScheduleDraft
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


class ScheduleService:
    def __init__(self, schedules: ScheduleRepository, *, today: Callable[[], date] = default_today):
        self._schedules = schedules
        self._today = today

    def list_all(self, *, lesson_id: Optional[int] = None) -> List[ScheduleDetail]:
        return list(self._schedules.list_details(lesson_id=lesson_id))

    def dates(self) -> List[date]:
        return list(self._schedules.list_dates())

    def for_date(self, on: date) -> List[ScheduleDetail]:
        return list(self._schedules.list_details(since=on, until=on, ascending=True))

    def upcoming(self, *, limit: int = DEFAULT_UPCOMING_LIMIT) -> List[ScheduleDetail]:
        return list(
            self._schedules.list_details(
                since=self._today(),
                include_cancelled=False,
                ascending=True,
                limit=int(limit),
            )
        )

    def get_detail(self, schedule_id: int) -> ScheduleDetail:
        detail = self._schedules.get_detail(int(schedule_id))
        if not detail:
            raise NotFoundError("Aula não encontrada")
        return detail

    def find_or_create(self, *, on: date, service_time_id: int) -> Schedule:
        """Return the schedule for ``(on, service_time_id)``, creating it when missing."""

        existing = self._schedules.get_by_date_and_service(on=on, service_time_id=int(service_time_id))
        if existing:
            return existing

        try:
            created = self._schedules.create(ScheduleDraft(date=on, service_time_id=int(service_time_id)))
        except DataAccessError as e:
            if not e.duplicate:
                raise
            # Another device created it between the lookup and the insert.
            existing = self._schedules.get_by_date_and_service(on=on, service_time_id=int(service_time_id))
            if not existing:
                raise
            return existing

        logger.info("Schedule %s created for %s (service time %s)", created.schedule_id, on, service_time_id)
        return created

    def update(
        self,
        schedule_id: int,
        *,
        lesson_id: Optional[int],
        notes: Optional[str] = None,
        is_cancelled: bool = False,
        event_type: Optional[EventType] = None,
    ) -> Schedule:
        current = self.get_detail(schedule_id).schedule
        if event_type is None:
            event_type = EventType.CANCELLED if is_cancelled else (
                EventType.REGULAR if current.event_type == EventType.CANCELLED else current.event_type
            )
        draft = ScheduleDraft(
            date=current.date,
            service_time_id=current.service_time_id,
            lesson_id=int(lesson_id) if lesson_id else None,
            event_type=event_type,
            notes=optional_text(notes),
            is_cancelled=bool(is_cancelled),
        )
        return self._schedules.update(current.schedule_id, draft)

    def replace_teachers(
        self,
        schedule_id: int,
        teacher_ids: Sequence[int],
        *,
        role: AssignmentRole = AssignmentRole.TEACHER,
    ) -> List[ScheduleAssignment]:
        detail = self.get_detail(schedule_id)

        unique: List[int] = []
        for tid in teacher_ids:
            tid = int(tid)
            if tid <= 0:
                raise ValidationError("Professor inválido")
            if tid not in unique:
                unique.append(tid)

        assignments = self._schedules.replace_assignments(
            schedule_id=detail.schedule_id, teacher_ids=unique, role=role
        )
        logger.info("Schedule %s now has %d teacher(s)", detail.schedule_id, len(unique))
        return list(assignments)

    def add_teacher(
        self,
        schedule_id: int,
        teacher_id: int,
        *,
        role: AssignmentRole = AssignmentRole.TEACHER,
    ) -> ScheduleAssignment:
        detail = self.get_detail(schedule_id)
        if any(a.teacher_id == int(teacher_id) for a in detail.assignments):
            raise ValidationError("Professor já está escalado nesta aula")
        return self._schedules.add_assignment(schedule_id=detail.schedule_id, teacher_id=int(teacher_id), role=role)

    def remove_teacher(self, schedule_id: int, teacher_id: int) -> None:
        if not self._schedules.remove_assignment(schedule_id=int(schedule_id), teacher_id=int(teacher_id)):
            raise ValidationError("Professor não está escalado nesta aula")

    def upsert_many(self, drafts: Sequence[ScheduleDraft]) -> List[Schedule]:
        drafts = [replace(d, notes=optional_text(d.notes)) for d in drafts]
        return list(self._schedules.upsert_by_date_and_service(drafts))

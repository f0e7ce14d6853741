from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AssignmentRole
from .model import Schedule, ScheduleAssignment, ScheduleDetail, ScheduleDraft


class ScheduleRepository(Protocol):
    def list_details(
        self,
        *,
        until: Optional[date] = None,
        since: Optional[date] = None,
        service_time_id: Optional[int] = None,
        lesson_id: Optional[int] = None,
        include_cancelled: bool = True,
        ascending: bool = False,
        limit: Optional[int] = None,
    ) -> Sequence[ScheduleDetail]:
        """Schedules joined with relations. Newest first unless ``ascending``."""

        raise NotImplementedError

    def get_detail(self, schedule_id: int) -> Optional[ScheduleDetail]:
        raise NotImplementedError

    def get_by_date_and_service(self, *, on: date, service_time_id: int) -> Optional[Schedule]:
        raise NotImplementedError

    def list_dates(self) -> Sequence[date]:
        """Distinct schedule dates, newest first."""

        raise NotImplementedError

    def create(self, draft: ScheduleDraft) -> Schedule:
        raise NotImplementedError

    def update(self, schedule_id: int, draft: ScheduleDraft) -> Schedule:
        raise NotImplementedError

    def upsert_by_date_and_service(self, drafts: Sequence[ScheduleDraft]) -> Sequence[Schedule]:
        raise NotImplementedError

    def list_assignments(self, schedule_id: int) -> Sequence[ScheduleAssignment]:
        raise NotImplementedError

    def replace_assignments(
        self,
        *,
        schedule_id: int,
        teacher_ids: Sequence[int],
        role: AssignmentRole = AssignmentRole.TEACHER,
    ) -> Sequence[ScheduleAssignment]:
        """Replace the full set of teachers for a schedule.

        Implementations must apply the delete and the insert atomically.
        """

        raise NotImplementedError

    def add_assignment(self, *, schedule_id: int, teacher_id: int, role: AssignmentRole) -> ScheduleAssignment:
        raise NotImplementedError

    def remove_assignment(self, *, schedule_id: int, teacher_id: int) -> bool:
        raise NotImplementedError

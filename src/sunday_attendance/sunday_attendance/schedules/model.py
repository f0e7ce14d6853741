from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple

from ..core.enums import AssignmentRole, EventType
from ..lessons.model import Lesson
from ..service_times.model import ServiceTime
from ..teachers.model import Teacher


@dataclass(frozen=True)
class Schedule:
    """Ocorrência de uma lição numa data e horário de culto."""

    schedule_id: int
    date: date
    service_time_id: Optional[int]
    lesson_id: Optional[int] = None
    event_type: EventType = EventType.REGULAR
    notes: Optional[str] = None
    is_cancelled: bool = False


@dataclass(frozen=True)
class ScheduleDraft:
    date: date
    service_time_id: Optional[int]
    lesson_id: Optional[int] = None
    event_type: EventType = EventType.REGULAR
    notes: Optional[str] = None
    is_cancelled: bool = False


@dataclass(frozen=True)
class ScheduleAssignment:
    assignment_id: int
    schedule_id: int
    teacher_id: int
    role: AssignmentRole = AssignmentRole.TEACHER
    teacher: Optional[Teacher] = None


@dataclass(frozen=True)
class ScheduleDetail:
    """Read-model: schedule joined with lesson, service time, teachers and attendance count."""

    schedule: Schedule
    lesson: Optional[Lesson] = None
    service_time: Optional[ServiceTime] = None
    assignments: Tuple[ScheduleAssignment, ...] = field(default_factory=tuple)
    attendance_count: int = 0

    @property
    def schedule_id(self) -> int:
        return self.schedule.schedule_id

    @property
    def date(self) -> date:
        return self.schedule.date

    @property
    def has_attendance(self) -> bool:
        return self.attendance_count > 0

    @property
    def teachers(self) -> Tuple[Teacher, ...]:
        return tuple(a.teacher for a in self.assignments if a.teacher is not None)

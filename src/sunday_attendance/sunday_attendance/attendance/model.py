from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.enums import AttendanceStatus
from ..schedules.model import ScheduleDetail


@dataclass(frozen=True)
class AttendanceRecord:
    """Presença de um aluno numa aula. Natural key: ``(student_id, schedule_id)``."""

    record_id: int
    student_id: int
    schedule_id: int
    status: AttendanceStatus
    service_time_id: Optional[int] = None
    notes: Optional[str] = None
    marked_by: Optional[int] = None
    marked_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceEntry:
    """One submitted mark, before persistence."""

    student_id: int
    status: AttendanceStatus
    notes: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecordView:
    """Read-model: record joined with the student (history screen)."""

    record: AttendanceRecord
    student_name: str
    is_visitor: bool = False

    @property
    def record_id(self) -> int:
        return self.record.record_id

    @property
    def status(self) -> AttendanceStatus:
        return self.record.status


@dataclass(frozen=True)
class StudentAttendanceRow:
    """Read-model: one line of a student's attendance timeline."""

    record: AttendanceRecord
    date: date
    service_time_name: Optional[str] = None
    lesson_name: Optional[str] = None


@dataclass(frozen=True)
class DatedAttendance:
    student_id: int
    date: date
    status: AttendanceStatus


@dataclass(frozen=True)
class AttendanceStats:
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    visitors: int = 0
    total: int = 0

    @property
    def total_present(self) -> int:
        return self.present + self.late + self.excused + self.visitors


@dataclass(frozen=True)
class HistoryGroup:
    schedule: ScheduleDetail
    records: Tuple[AttendanceRecordView, ...]
    stats: AttendanceStats

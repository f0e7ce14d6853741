from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceEntry, AttendanceRecord, AttendanceRecordView, DatedAttendance, StudentAttendanceRow


class AttendanceRepository(Protocol):
    def list_by_schedule(self, schedule_id: int) -> Sequence[AttendanceRecordView]:
        raise NotImplementedError

    def list_by_schedules(self, schedule_ids: Sequence[int]) -> Sequence[AttendanceRecordView]:
        raise NotImplementedError

    def list_by_student(self, student_id: int) -> Sequence[StudentAttendanceRow]:
        """Newest first."""

        raise NotImplementedError

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def bulk_save(
        self,
        *,
        schedule_id: int,
        service_time_id: Optional[int],
        entries: Sequence[AttendanceEntry],
        marked_by: Optional[int],
        marked_at: datetime,
    ) -> int:
        """Make ``entries`` the complete record set of the schedule, in one transaction.

        Records of students missing from ``entries`` are deleted, the rest upserted.
        Returns the number of saved records.
        """

        raise NotImplementedError

    def create_record(
        self,
        *,
        schedule_id: int,
        service_time_id: Optional[int],
        entry: AttendanceEntry,
        marked_by: Optional[int],
        marked_at: datetime,
    ) -> AttendanceRecord:
        raise NotImplementedError

    def update_record(self, record_id: int, *, status: AttendanceStatus, notes: Optional[str]) -> bool:
        raise NotImplementedError

    def delete_record(self, record_id: int) -> bool:
        raise NotImplementedError

    def list_dated_before(self, student_ids: Sequence[int], *, before: date) -> Sequence[DatedAttendance]:
        """Records of ``student_ids`` whose schedule date is strictly before ``before``."""

        raise NotImplementedError

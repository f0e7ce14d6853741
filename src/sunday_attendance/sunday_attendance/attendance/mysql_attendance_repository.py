from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, in_clause, iter_chunks
from .model import AttendanceEntry, AttendanceRecord, AttendanceRecordView, DatedAttendance, StudentAttendanceRow
from .repository import AttendanceRepository

_COLUMNS = "ar.record_id, ar.student_id, ar.schedule_id, ar.status, ar.service_time_id, ar.notes, ar.marked_by, ar.marked_at"

_UPSERT = """
    INSERT INTO attendance_records(student_id, schedule_id, status, service_time_id, notes, marked_by, marked_at)
    VALUES(%s,%s,%s,%s,%s,%s,%s)
    ON DUPLICATE KEY UPDATE status=VALUES(status), service_time_id=VALUES(service_time_id),
        notes=VALUES(notes), marked_by=VALUES(marked_by), marked_at=VALUES(marked_at)
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        student_id=int(r["student_id"]),
        schedule_id=int(r["schedule_id"]),
        status=AttendanceStatus(r["status"]),
        service_time_id=int(r["service_time_id"]) if r.get("service_time_id") is not None else None,
        notes=r.get("notes"),
        marked_by=int(r["marked_by"]) if r.get("marked_by") is not None else None,
        marked_at=r.get("marked_at"),
    )


def _to_view(r: dict) -> AttendanceRecordView:
    return AttendanceRecordView(
        record=_to_record(r),
        student_name=r["student_name"],
        is_visitor=as_bool(r.get("student_is_visitor")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_by_schedule(self, schedule_id: int) -> Sequence[AttendanceRecordView]:
        return self.list_by_schedules([int(schedule_id)])

    def list_by_schedules(self, schedule_ids: Sequence[int]) -> Sequence[AttendanceRecordView]:
        if not schedule_ids:
            return []
        with db_cursor(self._conn_factory, context="fetch attendance records") as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}, s.name AS student_name, s.is_visitor AS student_is_visitor
                FROM attendance_records ar
                JOIN students s ON s.student_id = ar.student_id
                WHERE ar.schedule_id IN ({in_clause(schedule_ids)})
                ORDER BY s.name ASC
                """,
                tuple(int(sid) for sid in schedule_ids),
            )
            return [_to_view(r) for r in fetchall(cur)]

    def list_by_student(self, student_id: int) -> Sequence[StudentAttendanceRow]:
        with db_cursor(self._conn_factory, context="fetch student attendance") as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}, sc.date AS schedule_date, st.name AS service_time_name, l.name AS lesson_name
                FROM attendance_records ar
                JOIN schedules sc ON sc.schedule_id = ar.schedule_id
                LEFT JOIN service_times st ON st.service_time_id = sc.service_time_id
                LEFT JOIN lessons l ON l.lesson_id = sc.lesson_id
                WHERE ar.student_id=%s
                ORDER BY sc.date DESC, st.display_order ASC
                """,
                (int(student_id),),
            )
            return [
                StudentAttendanceRow(
                    record=_to_record(r),
                    date=r["schedule_date"],
                    service_time_name=r.get("service_time_name"),
                    lesson_name=r.get("lesson_name"),
                )
                for r in fetchall(cur)
            ]

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory, context="fetch attendance record") as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records ar WHERE ar.record_id=%s", (int(record_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def bulk_save(
        self,
        *,
        schedule_id: int,
        service_time_id: Optional[int],
        entries: Sequence[AttendanceEntry],
        marked_by: Optional[int],
        marked_at: datetime,
    ) -> int:
        student_ids = [int(e.student_id) for e in entries]
        with db_cursor(self._conn_factory, context="save attendance") as (_, cur):
            if student_ids:
                cur.execute(
                    f"DELETE FROM attendance_records WHERE schedule_id=%s AND student_id NOT IN ({in_clause(student_ids)})",
                    (int(schedule_id), *student_ids),
                )
            else:
                cur.execute("DELETE FROM attendance_records WHERE schedule_id=%s", (int(schedule_id),))

            for chunk in iter_chunks(list(entries)):
                cur.executemany(
                    _UPSERT,
                    [
                        (
                            int(e.student_id),
                            int(schedule_id),
                            e.status.value,
                            service_time_id,
                            e.notes,
                            marked_by,
                            marked_at,
                        )
                        for e in chunk
                    ],
                )
        return len(student_ids)

    def create_record(
        self,
        *,
        schedule_id: int,
        service_time_id: Optional[int],
        entry: AttendanceEntry,
        marked_by: Optional[int],
        marked_at: datetime,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory, context="create attendance record") as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(student_id, schedule_id, status, service_time_id, notes, marked_by, marked_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(entry.student_id),
                    int(schedule_id),
                    entry.status.value,
                    service_time_id,
                    entry.notes,
                    marked_by,
                    marked_at,
                ),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records ar WHERE ar.record_id=%s", (int(cur.lastrowid),))
            return _to_record(fetchone(cur))

    def update_record(self, record_id: int, *, status: AttendanceStatus, notes: Optional[str]) -> bool:
        with db_cursor(self._conn_factory, context="update attendance record") as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET status=%s, notes=%s WHERE record_id=%s",
                (status.value, notes, int(record_id)),
            )
            return cur.rowcount > 0

    def delete_record(self, record_id: int) -> bool:
        with db_cursor(self._conn_factory, context="delete attendance record") as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE record_id=%s", (int(record_id),))
            return cur.rowcount > 0

    def list_dated_before(self, student_ids: Sequence[int], *, before: date) -> Sequence[DatedAttendance]:
        if not student_ids:
            return []
        out: list[DatedAttendance] = []
        with db_cursor(self._conn_factory, context="fetch attendance history") as (_, cur):
            for chunk in iter_chunks([int(sid) for sid in student_ids]):
                cur.execute(
                    f"""
                    SELECT ar.student_id, ar.status, sc.date
                    FROM attendance_records ar
                    JOIN schedules sc ON sc.schedule_id = ar.schedule_id
                    WHERE ar.student_id IN ({in_clause(chunk)}) AND sc.date < %s
                    ORDER BY sc.date DESC
                    """,
                    (*chunk, before),
                )
                out.extend(
                    DatedAttendance(student_id=int(r["student_id"]), date=r["date"], status=AttendanceStatus(r["status"]))
                    for r in fetchall(cur)
                )
        return out

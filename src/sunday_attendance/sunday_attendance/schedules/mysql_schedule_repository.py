from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Sequence

from ..common.datetime_utils import normalize_time
from ..core.enums import AssignmentRole, EventType, TeacherRole
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, in_clause
from ..lessons.model import Lesson
from ..service_times.model import ServiceTime
from ..teachers.model import Teacher
from .model import Schedule, ScheduleAssignment, ScheduleDetail, ScheduleDraft
from .repository import ScheduleRepository

_COLUMNS = "schedule_id, date, service_time_id, lesson_id, event_type, notes, is_cancelled"

_DETAIL_SELECT = """
    SELECT
        sc.schedule_id, sc.date, sc.service_time_id, sc.lesson_id, sc.event_type, sc.notes, sc.is_cancelled,
        l.name AS lesson_name, l.resource_url AS lesson_resource_url,
        l.curriculum_series AS lesson_series, l.lesson_number AS lesson_number,
        l.description AS lesson_description, l.is_special_event AS lesson_is_special_event,
        st.time AS st_time, st.name AS st_name, st.is_active AS st_is_active, st.display_order AS st_display_order,
        (SELECT COUNT(*) FROM attendance_records ar WHERE ar.schedule_id = sc.schedule_id) AS attendance_count
    FROM schedules sc
    LEFT JOIN lessons l ON l.lesson_id = sc.lesson_id
    LEFT JOIN service_times st ON st.service_time_id = sc.service_time_id
"""

_ASSIGNMENT_SELECT = """
    SELECT
        sa.assignment_id, sa.schedule_id, sa.teacher_id, sa.role,
        t.name AS teacher_name, t.email AS teacher_email, t.role AS teacher_role,
        t.is_active AS teacher_is_active, t.phone AS teacher_phone, t.auth_user_id AS teacher_auth_user_id
    FROM schedule_assignments sa
    JOIN teachers t ON t.teacher_id = sa.teacher_id
"""


def _to_schedule(r: dict) -> Schedule:
    return Schedule(
        schedule_id=int(r["schedule_id"]),
        date=r["date"],
        service_time_id=int(r["service_time_id"]) if r.get("service_time_id") is not None else None,
        lesson_id=int(r["lesson_id"]) if r.get("lesson_id") is not None else None,
        event_type=EventType(r.get("event_type") or EventType.REGULAR.value),
        notes=r.get("notes"),
        is_cancelled=as_bool(r.get("is_cancelled")),
    )


def _to_assignment(r: dict) -> ScheduleAssignment:
    return ScheduleAssignment(
        assignment_id=int(r["assignment_id"]),
        schedule_id=int(r["schedule_id"]),
        teacher_id=int(r["teacher_id"]),
        role=AssignmentRole(r["role"]),
        teacher=Teacher(
            teacher_id=int(r["teacher_id"]),
            name=r["teacher_name"],
            email=r["teacher_email"],
            role=TeacherRole(r["teacher_role"]),
            is_active=as_bool(r.get("teacher_is_active"), default=True),
            phone=r.get("teacher_phone"),
            auth_user_id=r.get("teacher_auth_user_id"),
        ),
    )


def _to_detail(r: dict, assignments: Sequence[ScheduleAssignment]) -> ScheduleDetail:
    schedule = _to_schedule(r)
    lesson = None
    if schedule.lesson_id is not None and r.get("lesson_name") is not None:
        lesson = Lesson(
            lesson_id=schedule.lesson_id,
            name=r["lesson_name"],
            resource_url=r.get("lesson_resource_url"),
            curriculum_series=r.get("lesson_series"),
            lesson_number=int(r["lesson_number"]) if r.get("lesson_number") is not None else None,
            description=r.get("lesson_description"),
            is_special_event=as_bool(r.get("lesson_is_special_event")),
        )
    service_time = None
    if schedule.service_time_id is not None and r.get("st_name") is not None:
        service_time = ServiceTime(
            service_time_id=schedule.service_time_id,
            time=normalize_time(r["st_time"]),
            name=r["st_name"],
            is_active=as_bool(r.get("st_is_active"), default=True),
            display_order=int(r.get("st_display_order") or 0),
        )
    return ScheduleDetail(
        schedule=schedule,
        lesson=lesson,
        service_time=service_time,
        assignments=tuple(assignments),
        attendance_count=int(r.get("attendance_count") or 0),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _assignments_for(self, cur, schedule_ids: Sequence[int]) -> Dict[int, List[ScheduleAssignment]]:
        out: Dict[int, List[ScheduleAssignment]] = {sid: [] for sid in schedule_ids}
        if not schedule_ids:
            return out
        cur.execute(
            f"{_ASSIGNMENT_SELECT} WHERE sa.schedule_id IN ({in_clause(schedule_ids)}) ORDER BY sa.assignment_id ASC",
            tuple(schedule_ids),
        )
        for r in fetchall(cur):
            out.setdefault(int(r["schedule_id"]), []).append(_to_assignment(r))
        return out

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
        clauses = ["1=1"]
        params: list[object] = []
        if until is not None:
            clauses.append("sc.date <= %s")
            params.append(until)
        if since is not None:
            clauses.append("sc.date >= %s")
            params.append(since)
        if service_time_id is not None:
            clauses.append("sc.service_time_id = %s")
            params.append(int(service_time_id))
        if lesson_id is not None:
            clauses.append("sc.lesson_id = %s")
            params.append(int(lesson_id))
        if not include_cancelled:
            clauses.append("sc.is_cancelled = 0")

        where = " AND ".join(clauses)
        order = "ASC" if ascending else "DESC"
        sql = f"{_DETAIL_SELECT} WHERE {where} ORDER BY sc.date {order}, st.display_order ASC"
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory, context="fetch schedules") as (_, cur):
            cur.execute(sql, tuple(params))
            rows = fetchall(cur)
            assignments = self._assignments_for(cur, [int(r["schedule_id"]) for r in rows])
            return [_to_detail(r, assignments.get(int(r["schedule_id"]), [])) for r in rows]

    def get_detail(self, schedule_id: int) -> Optional[ScheduleDetail]:
        with db_cursor(self._conn_factory, context="fetch schedule") as (_, cur):
            cur.execute(f"{_DETAIL_SELECT} WHERE sc.schedule_id = %s", (int(schedule_id),))
            r = fetchone(cur)
            if not r:
                return None
            assignments = self._assignments_for(cur, [int(schedule_id)])
            return _to_detail(r, assignments.get(int(schedule_id), []))

    def get_by_date_and_service(self, *, on: date, service_time_id: int) -> Optional[Schedule]:
        with db_cursor(self._conn_factory, context="fetch schedule") as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM schedules WHERE date=%s AND service_time_id=%s",
                (on, int(service_time_id)),
            )
            r = fetchone(cur)
            return _to_schedule(r) if r else None

    def list_dates(self) -> Sequence[date]:
        with db_cursor(self._conn_factory, context="fetch schedule dates") as (_, cur):
            cur.execute("SELECT DISTINCT date FROM schedules ORDER BY date DESC")
            return [r["date"] for r in fetchall(cur)]

    def create(self, draft: ScheduleDraft) -> Schedule:
        with db_cursor(self._conn_factory, context="create schedule") as (_, cur):
            cur.execute(
                """
                INSERT INTO schedules(date, service_time_id, lesson_id, event_type, notes, is_cancelled)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    draft.date,
                    draft.service_time_id,
                    draft.lesson_id,
                    draft.event_type.value,
                    draft.notes,
                    1 if draft.is_cancelled else 0,
                ),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM schedules WHERE schedule_id=%s", (int(cur.lastrowid),))
            return _to_schedule(fetchone(cur))

    def update(self, schedule_id: int, draft: ScheduleDraft) -> Schedule:
        with db_cursor(self._conn_factory, context="update schedule") as (_, cur):
            cur.execute(
                """
                UPDATE schedules
                SET date=%s, service_time_id=%s, lesson_id=%s, event_type=%s, notes=%s, is_cancelled=%s
                WHERE schedule_id=%s
                """,
                (
                    draft.date,
                    draft.service_time_id,
                    draft.lesson_id,
                    draft.event_type.value,
                    draft.notes,
                    1 if draft.is_cancelled else 0,
                    int(schedule_id),
                ),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM schedules WHERE schedule_id=%s", (int(schedule_id),))
            r = fetchone(cur)
            if not r:
                raise NotFoundError("Aula não encontrada")
            return _to_schedule(r)

    def upsert_by_date_and_service(self, drafts: Sequence[ScheduleDraft]) -> Sequence[Schedule]:
        if not drafts:
            return []
        with db_cursor(self._conn_factory, context="upsert schedules") as (_, cur):
            cur.executemany(
                """
                INSERT INTO schedules(date, service_time_id, lesson_id, event_type, notes, is_cancelled)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE lesson_id=VALUES(lesson_id), event_type=VALUES(event_type),
                    is_cancelled=VALUES(is_cancelled)
                """,
                [
                    (d.date, d.service_time_id, d.lesson_id, d.event_type.value, d.notes, 1 if d.is_cancelled else 0)
                    for d in drafts
                ],
            )
            dates = sorted({d.date for d in drafts})
            cur.execute(
                f"SELECT {_COLUMNS} FROM schedules WHERE date IN ({in_clause(dates)}) ORDER BY date ASC",
                tuple(dates),
            )
            wanted = {(d.date, d.service_time_id) for d in drafts}
            return [s for s in (_to_schedule(r) for r in fetchall(cur)) if (s.date, s.service_time_id) in wanted]

    def list_assignments(self, schedule_id: int) -> Sequence[ScheduleAssignment]:
        with db_cursor(self._conn_factory, context="fetch schedule assignments") as (_, cur):
            return self._assignments_for(cur, [int(schedule_id)])[int(schedule_id)]

    def replace_assignments(
        self,
        *,
        schedule_id: int,
        teacher_ids: Sequence[int],
        role: AssignmentRole = AssignmentRole.TEACHER,
    ) -> Sequence[ScheduleAssignment]:
        # Delete + insert share one connection, so they commit or roll back together.
        with db_cursor(self._conn_factory, context="replace schedule assignments") as (_, cur):
            cur.execute("DELETE FROM schedule_assignments WHERE schedule_id=%s", (int(schedule_id),))
            if teacher_ids:
                cur.executemany(
                    "INSERT INTO schedule_assignments(schedule_id, teacher_id, role) VALUES(%s,%s,%s)",
                    [(int(schedule_id), int(tid), role.value) for tid in teacher_ids],
                )
            return self._assignments_for(cur, [int(schedule_id)])[int(schedule_id)]

    def add_assignment(self, *, schedule_id: int, teacher_id: int, role: AssignmentRole) -> ScheduleAssignment:
        with db_cursor(self._conn_factory, context="add teacher to schedule") as (_, cur):
            cur.execute(
                "INSERT INTO schedule_assignments(schedule_id, teacher_id, role) VALUES(%s,%s,%s)",
                (int(schedule_id), int(teacher_id), role.value),
            )
            assignment_id = int(cur.lastrowid)
            cur.execute(f"{_ASSIGNMENT_SELECT} WHERE sa.assignment_id=%s", (assignment_id,))
            return _to_assignment(fetchone(cur))

    def remove_assignment(self, *, schedule_id: int, teacher_id: int) -> bool:
        with db_cursor(self._conn_factory, context="remove teacher from schedule") as (_, cur):
            cur.execute(
                "DELETE FROM schedule_assignments WHERE schedule_id=%s AND teacher_id=%s",
                (int(schedule_id), int(teacher_id)),
            )
            return cur.rowcount > 0

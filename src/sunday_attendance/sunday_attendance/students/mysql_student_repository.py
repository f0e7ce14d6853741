from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import StudentStatus
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, in_clause
from .model import Student, StudentDraft
from .repository import StudentRepository

_COLUMNS = "student_id, name, is_visitor, visitor_date, date_of_birth, age_group, status, notes"


def _to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        name=r["name"],
        is_visitor=as_bool(r.get("is_visitor")),
        status=StudentStatus(r["status"]),
        visitor_date=r.get("visitor_date"),
        date_of_birth=r.get("date_of_birth"),
        age_group=r.get("age_group"),
        notes=r.get("notes"),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active(self, *, include_visitors: bool = True) -> Sequence[Student]:
        sql = f"SELECT {_COLUMNS} FROM students WHERE status='active'"
        if not include_visitors:
            sql += " AND is_visitor=0"
        sql += " ORDER BY name ASC"

        with db_cursor(self._conn_factory, context="fetch active students") as (_, cur):
            cur.execute(sql)
            return [_to_student(r) for r in fetchall(cur)]

    def list_filtered(
        self,
        *,
        status: Optional[StudentStatus] = None,
        is_visitor: Optional[bool] = None,
    ) -> Sequence[Student]:
        clauses = ["1=1"]
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if is_visitor is not None:
            clauses.append("is_visitor=%s")
            params.append(1 if is_visitor else 0)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory, context="fetch students") as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE {where} ORDER BY name ASC", tuple(params))
            return [_to_student(r) for r in fetchall(cur)]

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory, context="fetch student") as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_by_name(self, name: str) -> Optional[Student]:
        with db_cursor(self._conn_factory, context="fetch student") as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE name=%s", (name,))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def create(self, draft: StudentDraft) -> Student:
        with db_cursor(self._conn_factory, context="create student") as (_, cur):
            cur.execute(
                """
                INSERT INTO students(name, is_visitor, visitor_date, date_of_birth, age_group, status, notes)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    draft.name,
                    1 if draft.is_visitor else 0,
                    draft.visitor_date,
                    draft.date_of_birth,
                    draft.age_group,
                    draft.status.value,
                    draft.notes,
                ),
            )
            student_id = int(cur.lastrowid)
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (student_id,))
            return _to_student(fetchone(cur))

    def update(self, student_id: int, draft: StudentDraft) -> Student:
        with db_cursor(self._conn_factory, context="update student") as (_, cur):
            cur.execute(
                """
                UPDATE students
                SET name=%s, is_visitor=%s, visitor_date=%s, date_of_birth=%s, age_group=%s, status=%s, notes=%s
                WHERE student_id=%s
                """,
                (
                    draft.name,
                    1 if draft.is_visitor else 0,
                    draft.visitor_date,
                    draft.date_of_birth,
                    draft.age_group,
                    draft.status.value,
                    draft.notes,
                    int(student_id),
                ),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            r = fetchone(cur)
            if not r:
                raise NotFoundError("Aluno não encontrado")
            return _to_student(r)

    def set_status(self, student_id: int, status: StudentStatus) -> bool:
        with db_cursor(self._conn_factory, context="update student status") as (_, cur):
            cur.execute("UPDATE students SET status=%s WHERE student_id=%s", (status.value, int(student_id)))
            return cur.rowcount > 0

    def upsert_by_name(self, names: Sequence[str]) -> Sequence[Student]:
        if not names:
            return []
        with db_cursor(self._conn_factory, context="upsert students") as (_, cur):
            cur.executemany(
                """
                INSERT INTO students(name, is_visitor, status) VALUES(%s, 0, 'active')
                ON DUPLICATE KEY UPDATE is_visitor=VALUES(is_visitor), status=VALUES(status)
                """,
                [(name,) for name in names],
            )
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE name IN ({in_clause(names)})", tuple(names))
            return [_to_student(r) for r in fetchall(cur)]

from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import TeacherRole
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import Teacher
from .repository import TeacherRepository

_COLUMNS = "teacher_id, name, email, role, is_active, phone, auth_user_id"


def _to_teacher(r: dict) -> Teacher:
    return Teacher(
        teacher_id=int(r["teacher_id"]),
        name=r["name"],
        email=r["email"],
        role=TeacherRole(r["role"]),
        is_active=as_bool(r.get("is_active"), default=True),
        phone=r.get("phone"),
        auth_user_id=r.get("auth_user_id"),
    )


class MySQLTeacherRepository(TeacherRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active(self) -> Sequence[Teacher]:
        with db_cursor(self._conn_factory, context="fetch teachers") as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM teachers WHERE is_active=1 ORDER BY name ASC")
            return [_to_teacher(r) for r in fetchall(cur)]

    def get_by_id(self, teacher_id: int) -> Optional[Teacher]:
        with db_cursor(self._conn_factory, context="fetch teacher") as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM teachers WHERE teacher_id=%s", (int(teacher_id),))
            r = fetchone(cur)
            return _to_teacher(r) if r else None

    def get_active_by_email(self, email: str) -> Optional[Teacher]:
        with db_cursor(self._conn_factory, context="fetch teacher") as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM teachers WHERE email=%s AND is_active=1", (email,))
            r = fetchone(cur)
            return _to_teacher(r) if r else None

    def get_by_auth_id(self, auth_user_id: str) -> Optional[Teacher]:
        # Not finding a teacher is not an error (might be a new user).
        with db_cursor(self._conn_factory, context="fetch teacher") as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM teachers WHERE auth_user_id=%s", (auth_user_id,))
            r = fetchone(cur)
            return _to_teacher(r) if r else None

    def link_auth_user(self, teacher_id: int, auth_user_id: str) -> bool:
        with db_cursor(self._conn_factory, context="link teacher login") as (_, cur):
            cur.execute(
                "UPDATE teachers SET auth_user_id=%s WHERE teacher_id=%s AND auth_user_id IS NULL",
                (auth_user_id, int(teacher_id)),
            )
            return cur.rowcount > 0

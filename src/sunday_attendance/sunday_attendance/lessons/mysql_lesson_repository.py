from __future__ import annotations

from typing import Optional, Sequence

from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, in_clause
from .model import Lesson, LessonDraft
from .repository import LessonRepository

_COLUMNS = "lesson_id, name, resource_url, curriculum_series, lesson_number, description, is_special_event"


def _to_lesson(r: dict) -> Lesson:
    return Lesson(
        lesson_id=int(r["lesson_id"]),
        name=r["name"],
        resource_url=r.get("resource_url"),
        curriculum_series=r.get("curriculum_series"),
        lesson_number=int(r["lesson_number"]) if r.get("lesson_number") is not None else None,
        description=r.get("description"),
        is_special_event=as_bool(r.get("is_special_event")),
    )


def _params(draft: LessonDraft) -> tuple:
    return (
        draft.name,
        draft.resource_url,
        draft.curriculum_series,
        draft.lesson_number,
        draft.description,
        1 if draft.is_special_event else 0,
    )


class MySQLLessonRepository(LessonRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Lesson]:
        with db_cursor(self._conn_factory, context="fetch lessons") as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM lessons
                ORDER BY curriculum_series IS NULL, curriculum_series ASC, lesson_number ASC, name ASC
                """
            )
            return [_to_lesson(r) for r in fetchall(cur)]

    def get_by_id(self, lesson_id: int) -> Optional[Lesson]:
        with db_cursor(self._conn_factory, context="fetch lesson") as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM lessons WHERE lesson_id=%s", (int(lesson_id),))
            r = fetchone(cur)
            return _to_lesson(r) if r else None

    def get_by_name(self, name: str) -> Optional[Lesson]:
        with db_cursor(self._conn_factory, context="fetch lesson") as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM lessons WHERE name=%s", (name,))
            r = fetchone(cur)
            return _to_lesson(r) if r else None

    def create(self, draft: LessonDraft) -> Lesson:
        with db_cursor(self._conn_factory, context="create lesson") as (_, cur):
            cur.execute(
                """
                INSERT INTO lessons(name, resource_url, curriculum_series, lesson_number, description, is_special_event)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                _params(draft),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM lessons WHERE lesson_id=%s", (int(cur.lastrowid),))
            return _to_lesson(fetchone(cur))

    def update(self, lesson_id: int, draft: LessonDraft) -> Lesson:
        with db_cursor(self._conn_factory, context="update lesson") as (_, cur):
            cur.execute(
                """
                UPDATE lessons
                SET name=%s, resource_url=%s, curriculum_series=%s, lesson_number=%s, description=%s, is_special_event=%s
                WHERE lesson_id=%s
                """,
                _params(draft) + (int(lesson_id),),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM lessons WHERE lesson_id=%s", (int(lesson_id),))
            r = fetchone(cur)
            if not r:
                raise NotFoundError("Lição não encontrada")
            return _to_lesson(r)

    def delete(self, lesson_id: int) -> bool:
        with db_cursor(self._conn_factory, context="delete lesson") as (_, cur):
            cur.execute("DELETE FROM lessons WHERE lesson_id=%s", (int(lesson_id),))
            return cur.rowcount > 0

    def upsert_by_name(self, drafts: Sequence[LessonDraft]) -> Sequence[Lesson]:
        if not drafts:
            return []
        with db_cursor(self._conn_factory, context="upsert lessons") as (_, cur):
            cur.executemany(
                """
                INSERT INTO lessons(name, resource_url, curriculum_series, lesson_number, description, is_special_event)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    resource_url=VALUES(resource_url),
                    curriculum_series=VALUES(curriculum_series),
                    lesson_number=VALUES(lesson_number),
                    is_special_event=VALUES(is_special_event)
                """,
                [_params(d) for d in drafts],
            )
            names = [d.name for d in drafts]
            cur.execute(f"SELECT {_COLUMNS} FROM lessons WHERE name IN ({in_clause(names)})", tuple(names))
            return [_to_lesson(r) for r in fetchall(cur)]

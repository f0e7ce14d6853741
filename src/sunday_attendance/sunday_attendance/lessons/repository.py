from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Lesson, LessonDraft


class LessonRepository(Protocol):
    def list_all(self) -> Sequence[Lesson]:
        """Ordered by curriculum series, then lesson number."""

        raise NotImplementedError

    def get_by_id(self, lesson_id: int) -> Optional[Lesson]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Lesson]:
        raise NotImplementedError

    def create(self, draft: LessonDraft) -> Lesson:
        raise NotImplementedError

    def update(self, lesson_id: int, draft: LessonDraft) -> Lesson:
        raise NotImplementedError

    def delete(self, lesson_id: int) -> bool:
        raise NotImplementedError

    def upsert_by_name(self, drafts: Sequence[LessonDraft]) -> Sequence[Lesson]:
        raise NotImplementedError

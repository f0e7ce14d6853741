from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from ..common.validators import optional_text, require_non_empty
from ..core.exceptions import NotFoundError, ValidationError
from ..schedules.model import ScheduleDetail
from ..schedules.repository import ScheduleRepository
from .model import Lesson, LessonDraft, parse_curriculum
from .repository import LessonRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LessonDetail:
    lesson: Lesson
    schedules: Tuple[ScheduleDetail, ...] = ()


def prepare_draft(draft: LessonDraft) -> LessonDraft:
    """Normalize a lesson draft; series and number come from the name."""

    name = " ".join(require_non_empty(draft.name, "Nome da lição").split())
    series, number = parse_curriculum(name)
    return replace(
        draft,
        name=name,
        resource_url=optional_text(draft.resource_url),
        description=optional_text(draft.description),
        curriculum_series=series,
        lesson_number=number,
        is_special_event=series is None,
    )


class LessonService:
    def __init__(self, lessons: LessonRepository, schedules: ScheduleRepository):
        self._lessons = lessons
        self._schedules = schedules

    def list(self) -> List[Lesson]:
        return list(self._lessons.list_all())

    def get(self, lesson_id: int) -> Lesson:
        lesson = self._lessons.get_by_id(int(lesson_id))
        if not lesson:
            raise NotFoundError("Lição não encontrada")
        return lesson

    def detail(self, lesson_id: int) -> LessonDetail:
        lesson = self.get(lesson_id)
        schedules = self._schedules.list_details(lesson_id=lesson.lesson_id)
        return LessonDetail(lesson=lesson, schedules=tuple(schedules))

    def create(self, draft: LessonDraft) -> Lesson:
        draft = prepare_draft(draft)
        if self._lessons.get_by_name(draft.name):
            raise ValidationError("Já existe uma lição com este nome")
        lesson = self._lessons.create(draft)
        logger.info("Lesson %s created (%s)", lesson.lesson_id, lesson.name)
        return lesson

    def update(self, lesson_id: int, draft: LessonDraft) -> Lesson:
        current = self.get(lesson_id)
        draft = prepare_draft(draft)
        other = self._lessons.get_by_name(draft.name)
        if other and other.lesson_id != current.lesson_id:
            raise ValidationError("Já existe uma lição com este nome")
        return self._lessons.update(current.lesson_id, draft)

    def delete(self, lesson_id: int) -> None:
        lesson = self.get(lesson_id)
        if not self._lessons.delete(lesson.lesson_id):
            raise ValidationError("Falha ao remover lição")
        logger.info("Lesson %s deleted", lesson.lesson_id)

    def upsert_many(self, drafts: Sequence[LessonDraft]) -> List[Lesson]:
        seen: dict[str, LessonDraft] = {}
        for draft in drafts:
            draft = prepare_draft(draft)
            seen.setdefault(draft.name, draft)
        return list(self._lessons.upsert_by_name(list(seen.values())))

    def find_by_name(self, name: str) -> Optional[Lesson]:
        return self._lessons.get_by_name(name)

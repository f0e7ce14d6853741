from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Callable, List, Optional

from ..common.datetime_utils import today as default_today
from ..common.search import fuzzy_filter
from ..common.validators import optional_text, require_non_empty
from ..core.enums import StudentStatus
from ..core.exceptions import NotFoundError, ValidationError
from .model import Student, StudentDraft
from .repository import StudentRepository

logger = logging.getLogger(__name__)


class StudentService:
    """Use cases: roster management and in-session visitors."""

    def __init__(self, students: StudentRepository, *, today: Callable[[], date] = default_today):
        self._students = students
        self._today = today

    def list_active(self, *, include_visitors: bool = True) -> List[Student]:
        return list(self._students.list_active(include_visitors=include_visitors))

    def list_visitors(self) -> List[Student]:
        return list(self._students.list_filtered(status=StudentStatus.ACTIVE, is_visitor=True))

    def search(
        self,
        *,
        query: str = "",
        status: Optional[StudentStatus] = None,
        is_visitor: Optional[bool] = None,
    ) -> List[Student]:
        students = self._students.list_filtered(status=status, is_visitor=is_visitor)
        return fuzzy_filter(students, query, key=lambda s: s.name)

    def get(self, student_id: int) -> Student:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Aluno não encontrado")
        return student

    def create(self, draft: StudentDraft) -> Student:
        draft = self._clean(draft)
        if self._students.get_by_name(draft.name):
            raise ValidationError("Já existe um aluno com este nome")

        student = self._students.create(draft)
        logger.info("Student %s created (visitor=%s)", student.student_id, student.is_visitor)
        return student

    def update(self, student_id: int, draft: StudentDraft) -> Student:
        current = self.get(student_id)
        draft = self._clean(draft)

        other = self._students.get_by_name(draft.name)
        if other and other.student_id != current.student_id:
            raise ValidationError("Já existe um aluno com este nome")

        return self._students.update(current.student_id, draft)

    def delete(self, student_id: int) -> None:
        """Soft delete: students are flipped to inactive, never destroyed."""
        student = self.get(student_id)
        if not self._students.set_status(student.student_id, StudentStatus.INACTIVE):
            raise ValidationError("Falha ao remover aluno")
        logger.info("Student %s marked inactive", student.student_id)

    def reactivate(self, student_id: int) -> None:
        student = self.get(student_id)
        if not self._students.set_status(student.student_id, StudentStatus.ACTIVE):
            raise ValidationError("Falha ao reativar aluno")

    def add_visitor(self, name: str, *, notes: Optional[str] = None) -> Student:
        name = require_non_empty(name, "Nome do visitante")

        existing = self._students.get_by_name(name)
        if existing:
            if existing.is_visitor:
                if not existing.is_active:
                    self._students.set_status(existing.student_id, StudentStatus.ACTIVE)
                    existing = replace(existing, status=StudentStatus.ACTIVE)
                return existing
            raise ValidationError("Já existe um aluno com este nome")

        return self.create(
            StudentDraft(
                name=name,
                is_visitor=True,
                visitor_date=self._today(),
                status=StudentStatus.ACTIVE,
                notes=optional_text(notes),
            )
        )

    def _clean(self, draft: StudentDraft) -> StudentDraft:
        name = require_non_empty(draft.name, "Nome")
        if draft.date_of_birth and draft.date_of_birth > self._today():
            raise ValidationError("Data de nascimento no futuro")
        return replace(draft, name=" ".join(name.split()), notes=optional_text(draft.notes), age_group=optional_text(draft.age_group))

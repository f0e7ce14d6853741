from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import StudentStatus
from .model import Student, StudentDraft


class StudentRepository(Protocol):
    """Repository interface for students.

    Services depend on this interface, not on a concrete database.
    """

    def list_active(self, *, include_visitors: bool = True) -> Sequence[Student]:
        raise NotImplementedError

    def list_filtered(
        self,
        *,
        status: Optional[StudentStatus] = None,
        is_visitor: Optional[bool] = None,
    ) -> Sequence[Student]:
        raise NotImplementedError

    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Student]:
        raise NotImplementedError

    def create(self, draft: StudentDraft) -> Student:
        raise NotImplementedError

    def update(self, student_id: int, draft: StudentDraft) -> Student:
        raise NotImplementedError

    def set_status(self, student_id: int, status: StudentStatus) -> bool:
        raise NotImplementedError

    def upsert_by_name(self, names: Sequence[str]) -> Sequence[Student]:
        """Insert roster students keyed by name (active, non-visitor)."""

        raise NotImplementedError

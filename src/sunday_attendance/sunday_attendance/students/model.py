from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import StudentStatus


@dataclass(frozen=True)
class Student:
    """Aluno do roster (ou visitante)."""

    student_id: int
    name: str
    is_visitor: bool = False
    status: StudentStatus = StudentStatus.ACTIVE
    visitor_date: Optional[date] = None
    date_of_birth: Optional[date] = None
    age_group: Optional[str] = None
    notes: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == StudentStatus.ACTIVE


@dataclass(frozen=True)
class StudentDraft:
    """Fields accepted on create/update."""

    name: str
    is_visitor: bool = False
    status: StudentStatus = StudentStatus.ACTIVE
    visitor_date: Optional[date] = None
    date_of_birth: Optional[date] = None
    age_group: Optional[str] = None
    notes: Optional[str] = None

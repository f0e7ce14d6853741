from __future__ import annotations

from enum import Enum


class TeacherRole(str, Enum):
    """Papel do professor para permissões."""

    ADMIN = "admin"
    TEACHER = "teacher"


class AssignmentRole(str, Enum):
    LEAD = "lead"
    TEACHER = "teacher"
    ASSISTANT = "assistant"


class StudentStatus(str, Enum):
    """Ciclo de vida do aluno. Alunos nunca são apagados, apenas mudam de status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    AGED_OUT = "aged-out"
    MOVED = "moved"


class AttendanceStatus(str, Enum):
    """Status de presença gravado no banco."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"

    @property
    def attended(self) -> bool:
        return self is not AttendanceStatus.ABSENT


class EventType(str, Enum):
    REGULAR = "regular"
    FAMILY_SERVICE = "family_service"
    CANCELLED = "cancelled"
    RETREAT = "retreat"
    PARTY = "party"


class MarkingMethod(str, Enum):
    SWIPE = "swipe"
    SEARCH = "search"


class AuthState(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class NavigationState(str, Enum):
    IDLE = "idle"
    BLOCKED = "blocked"
    PROCEEDING = "proceeding"

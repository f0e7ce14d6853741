from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import TeacherRole


@dataclass(frozen=True)
class Teacher:
    """Professor. ``auth_user_id`` links to the identity provider subject after first login."""

    teacher_id: int
    name: str
    email: str
    role: TeacherRole = TeacherRole.TEACHER
    is_active: bool = True
    phone: Optional[str] = None
    auth_user_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == TeacherRole.ADMIN

    def to_session(self) -> dict:
        return {
            "teacher_id": self.teacher_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "is_active": self.is_active,
            "phone": self.phone,
            "auth_user_id": self.auth_user_id,
        }

    @classmethod
    def from_session(cls, data: dict) -> "Teacher":
        return cls(
            teacher_id=int(data["teacher_id"]),
            name=data["name"],
            email=data["email"],
            role=TeacherRole(data.get("role", TeacherRole.TEACHER.value)),
            is_active=bool(data.get("is_active", True)),
            phone=data.get("phone"),
            auth_user_id=data.get("auth_user_id"),
        )

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Teacher


class TeacherRepository(Protocol):
    def list_active(self) -> Sequence[Teacher]:
        raise NotImplementedError

    def get_by_id(self, teacher_id: int) -> Optional[Teacher]:
        raise NotImplementedError

    def get_active_by_email(self, email: str) -> Optional[Teacher]:
        raise NotImplementedError

    def get_by_auth_id(self, auth_user_id: str) -> Optional[Teacher]:
        raise NotImplementedError

    def link_auth_user(self, teacher_id: int, auth_user_id: str) -> bool:
        raise NotImplementedError

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import AuthState
from ..core.exceptions import AuthStateError
from ..teachers.model import Teacher

SESSION_KEY = "auth"

_TRANSITIONS = {
    AuthState.LOADING: {AuthState.AUTHENTICATED, AuthState.UNAUTHENTICATED},
    AuthState.AUTHENTICATED: {AuthState.UNAUTHENTICATED},
    AuthState.UNAUTHENTICATED: {AuthState.LOADING},
}


@dataclass(frozen=True)
class Identity:
    """An identity confirmed by the identity provider."""

    subject: str
    email: str


class AuthSession:
    """Explicit auth state for one browser session.

    loading -> authenticated | unauthenticated
    authenticated -> unauthenticated
    unauthenticated -> loading
    """

    def __init__(self, state: AuthState = AuthState.UNAUTHENTICATED, teacher: Optional[Teacher] = None):
        self._state = state
        self._teacher = teacher

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def teacher(self) -> Optional[Teacher]:
        return self._teacher

    @property
    def is_authenticated(self) -> bool:
        return self._state == AuthState.AUTHENTICATED and self._teacher is not None

    def _move(self, target: AuthState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise AuthStateError(f"Illegal auth transition: {self._state.value} -> {target.value}")
        self._state = target

    def begin(self) -> None:
        self._move(AuthState.LOADING)

    def authenticate(self, teacher: Teacher) -> None:
        self._move(AuthState.AUTHENTICATED)
        self._teacher = teacher

    def fail(self) -> None:
        self._move(AuthState.UNAUTHENTICATED)
        self._teacher = None

    def sign_out(self) -> None:
        self._move(AuthState.UNAUTHENTICATED)
        self._teacher = None

    def to_dict(self) -> dict:
        return {
            "state": self._state.value,
            "teacher": self._teacher.to_session() if self._teacher else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "AuthSession":
        if not data:
            return cls()
        teacher = Teacher.from_session(data["teacher"]) if data.get("teacher") else None
        return cls(state=AuthState(data.get("state", AuthState.UNAUTHENTICATED.value)), teacher=teacher)


def load_auth(store) -> AuthSession:
    return AuthSession.from_dict(store.get(SESSION_KEY))


def save_auth(store, auth: AuthSession) -> None:
    store[SESSION_KEY] = auth.to_dict()

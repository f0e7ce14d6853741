from __future__ import annotations

from typing import Optional, Sequence
from urllib.parse import urlsplit

from ..core.enums import NavigationState
from ..core.exceptions import DomainError

SESSION_KEY = "navigation"

MARKING_PREFIXES = ("/marking", "/search-marking", "/static", "/logout", "/login", "/api/")


class NavigationGuard:
    """Blocks in-app navigation away from marking while marks are unsaved.

    ``idle -> blocked`` when a request leaves the marking screens with unsaved
    marks; ``blocked -> proceeding`` on discard; ``blocked -> idle`` on
    "continue marking"; ``proceeding -> idle`` once the user has left.
    The state lives in the browser session between requests.
    """

    def __init__(
        self,
        *,
        allowed_prefixes: Sequence[str] = MARKING_PREFIXES,
        state: NavigationState = NavigationState.IDLE,
    ):
        self._allowed = tuple(allowed_prefixes)
        self.state = state

    def is_allowed(self, path: str) -> bool:
        return any(path == p.rstrip("/") or path.startswith(p) for p in self._allowed)

    def evaluate(self, path: str, *, has_unsaved_marks: bool) -> NavigationState:
        if self.is_allowed(path):
            return self.state
        if self.state == NavigationState.PROCEEDING or not has_unsaved_marks:
            self.state = NavigationState.IDLE
        else:
            self.state = NavigationState.BLOCKED
        return self.state

    def block(self) -> None:
        if self.state == NavigationState.PROCEEDING:
            raise DomainError("Cannot block while proceeding")
        self.state = NavigationState.BLOCKED

    def proceed(self) -> None:
        if self.state != NavigationState.BLOCKED:
            raise DomainError(f"Cannot proceed from {self.state.value}")
        self.state = NavigationState.PROCEEDING

    def stay(self) -> None:
        if self.state != NavigationState.BLOCKED:
            raise DomainError(f"Cannot stay from {self.state.value}")
        self.state = NavigationState.IDLE

    def reset(self) -> None:
        self.state = NavigationState.IDLE


def load_guard(store) -> NavigationGuard:
    return NavigationGuard(state=NavigationState(store.get(SESSION_KEY) or NavigationState.IDLE.value))


def save_guard(store, guard: NavigationGuard) -> None:
    store[SESSION_KEY] = guard.state.value


def safe_target(target: Optional[str], default: str = "/") -> str:
    """Only same-site absolute paths are accepted as redirect targets."""

    if not target:
        return default
    parts = urlsplit(target)
    if parts.scheme or parts.netloc or not target.startswith("/") or target.startswith("//"):
        return default
    return target

from __future__ import annotations

import logging
from dataclasses import replace

from ..core.constants import UNAUTHORIZED_TEACHER_MESSAGE
from ..core.enums import AuthState, TeacherRole
from ..core.exceptions import AuthorizationError, DomainError
from ..teachers.model import Teacher
from ..teachers.repository import TeacherRepository
from .identity import IdentityProvider
from .model import AuthSession

logger = logging.getLogger(__name__)

DEV_TEACHER = Teacher(
    teacher_id=1,
    name="Dev Teacher",
    email="dev@localhost",
    role=TeacherRole.ADMIN,
    is_active=True,
)


class AuthService:
    """Use case: map an identity-provider login onto an active teacher."""

    def __init__(self, identity_provider: IdentityProvider, teachers: TeacherRepository):
        self._identity = identity_provider
        self._teachers = teachers

    def sign_in(self, auth: AuthSession, email: str, password: str) -> Teacher:
        self._reset(auth)
        auth.begin()

        try:
            teacher = self._resolve_teacher(email, password)
        except DomainError:
            # never leave the session in loading
            auth.fail()
            raise

        auth.authenticate(teacher)
        logger.info("Teacher %s signed in", teacher.teacher_id)
        return teacher

    def _resolve_teacher(self, email: str, password: str) -> Teacher:
        identity = self._identity.authenticate(email, password)

        teacher = self._teachers.get_by_auth_id(identity.subject)
        if not teacher:
            teacher = self._teachers.get_active_by_email(identity.email)
        if not teacher or not teacher.is_active:
            logger.warning("Identity %s has no active teacher; signed out", identity.subject)
            raise AuthorizationError(UNAUTHORIZED_TEACHER_MESSAGE)

        if teacher.auth_user_id != identity.subject:
            self._teachers.link_auth_user(teacher.teacher_id, identity.subject)
            teacher = replace(teacher, auth_user_id=identity.subject)
        return teacher

    @staticmethod
    def _reset(auth: AuthSession) -> None:
        if auth.state == AuthState.AUTHENTICATED:
            auth.sign_out()
        elif auth.state == AuthState.LOADING:
            # attempt interrupted before it settled
            auth.fail()

    def dev_session(self, auth: AuthSession) -> Teacher:
        """Bypass the identity provider with a mock admin teacher (DEV_BYPASS_AUTH only)."""

        self._reset(auth)
        auth.begin()
        auth.authenticate(DEV_TEACHER)
        logger.warning("Development auth bypass used")
        return DEV_TEACHER

    def sign_out(self, auth: AuthSession) -> None:
        if auth.state == AuthState.AUTHENTICATED:
            auth.sign_out()
        elif auth.state == AuthState.LOADING:
            auth.fail()

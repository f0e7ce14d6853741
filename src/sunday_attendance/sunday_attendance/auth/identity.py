from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from werkzeug.security import check_password_hash

from ..core.exceptions import AuthenticationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredCredential:
    subject: str
    email: str
    password_hash: str


class CredentialRepository(Protocol):
    def get_by_email(self, email: str) -> Optional[StoredCredential]:
        raise NotImplementedError


class IdentityProvider(Protocol):
    def authenticate(self, email: str, password: str) -> Identity:
        """Raise ``AuthenticationError`` on bad credentials."""

        raise NotImplementedError


class MySQLCredentialRepository(CredentialRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_email(self, email: str) -> Optional[StoredCredential]:
        with db_cursor(self._conn_factory, context="fetch identity") as (_, cur):
            cur.execute(
                "SELECT subject, email, password_hash FROM auth_identities WHERE email=%s",
                (email.strip().lower(),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return StoredCredential(subject=r["subject"], email=r["email"], password_hash=r["password_hash"])


class PasswordIdentityProvider(IdentityProvider):
    """Email + password against the identity store's werkzeug hashes."""

    def __init__(self, credentials: CredentialRepository):
        self._credentials = credentials

    def authenticate(self, email: str, password: str) -> Identity:
        email = (email or "").strip().lower()
        if not email or not password:
            raise AuthenticationError("Informe email e senha")

        cred = self._credentials.get_by_email(email)
        if not cred:
            raise AuthenticationError("Email ou senha inválidos")

        try:
            ok = check_password_hash(cred.password_hash, password)
        except ValueError:
            # placeholder or corrupted hash
            logger.warning("Unreadable password hash for identity %s", cred.subject)
            ok = False

        if not ok:
            raise AuthenticationError("Email ou senha inválidos")
        return Identity(subject=cred.subject, email=cred.email)

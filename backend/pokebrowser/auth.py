# backend/pokebrowser/auth.py

import logging
from typing import Optional, Protocol

from .config import settings

logger = logging.getLogger(__name__)


class Authenticator(Protocol):
    def authenticate(self, email: str, password: str) -> bool: ...


class StaticCredentialsAuthenticator:
    """Accepts exactly one configured email/password pair. Comparison is plaintext."""

    def __init__(self, email: Optional[str], password: Optional[str]):
        self._email = email
        self._password = password

    def authenticate(self, email: str, password: str) -> bool:
        if not self._email or not self._password:
            logger.warning("Login attempted but no credentials are configured.")
            return False
        return email == self._email and password == self._password


def get_authenticator() -> Authenticator:
    """FastAPI dependency; override it to plug in another authenticator."""
    return StaticCredentialsAuthenticator(settings.login_email, settings.login_password)

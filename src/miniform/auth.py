from __future__ import annotations

import base64
import binascii
import logging
import secrets
from typing import Protocol

from fastapi import Request

from miniform.config import Settings
from miniform.errors import Unauthorized

logger = logging.getLogger(__name__)

SESSION_KEY = "admin"


class AuthProvider(Protocol):
    def is_authorized(self, request: Request) -> bool: ...

    def require_admin(self, request: Request) -> None: ...

    def login(self, request: Request, username: str, password: str) -> bool: ...

    def logout(self, request: Request) -> None: ...


class NoAuthProvider:
    def is_authorized(self, request: Request) -> bool:
        return True

    def require_admin(self, request: Request) -> None:
        return None

    def login(self, request: Request, username: str, password: str) -> bool:
        request.session[SESSION_KEY] = True
        return True

    def logout(self, request: Request) -> None:
        request.session.clear()


class StaticCredentialAuth:
    """Single admin account configured through the environment.

    Browsers get a session stored in the signed, httpOnly cookie managed by
    ``SessionMiddleware``; API clients may send HTTP Basic credentials.
    """

    def __init__(self, username: str, password: str) -> None:
        self._username = username
        self._password = password
        if not password:
            logger.warning("ADMIN_PASSWORD is not set; admin login is disabled")

    def check_credentials(self, username: str, password: str) -> bool:
        if not self._password:
            return False
        user_ok = secrets.compare_digest(username.encode("utf-8"), self._username.encode("utf-8"))
        pass_ok = secrets.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))
        return user_ok and pass_ok

    def _basic_credentials(self, request: Request) -> tuple[str, str] | None:
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "basic" or not token:
            return None
        try:
            decoded = base64.b64decode(token, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None
        username, sep, password = decoded.partition(":")
        if not sep:
            return None
        return username, password

    def is_authorized(self, request: Request) -> bool:
        if request.session.get(SESSION_KEY) is True:
            return True
        credentials = self._basic_credentials(request)
        return credentials is not None and self.check_credentials(*credentials)

    def require_admin(self, request: Request) -> None:
        if not self.is_authorized(request):
            raise Unauthorized()

    def login(self, request: Request, username: str, password: str) -> bool:
        if not self.check_credentials(username, password):
            logger.warning("Failed admin login for %r", username)
            return False
        request.session[SESSION_KEY] = True
        return True

    def logout(self, request: Request) -> None:
        request.session.clear()


def get_auth_provider(settings: Settings) -> AuthProvider:
    if settings.auth_mode == "none":
        return NoAuthProvider()
    return StaticCredentialAuth(settings.admin_username, settings.admin_password)

"""
Cookie authentication.

The signed-in user's claims are serialised into a signed, timestamped cookie.
``CookieAuthBackend`` plugs into Starlette's ``AuthenticationMiddleware`` and
turns a valid cookie back into ``request.user``; a missing, tampered or expired
cookie simply leaves the request anonymous.
"""

import logging
from dataclasses import dataclass, field

from itsdangerous import BadSignature, URLSafeTimedSerializer
from starlette.authentication import (
    AuthCredentials,
    AuthenticationBackend,
    BaseUser,
    UnauthenticatedUser,
)
from starlette.requests import HTTPConnection
from starlette.responses import Response

from ..config import Settings

logger = logging.getLogger(__name__)


@dataclass
class ClaimsUser(BaseUser):
    """Authenticated principal rebuilt from the auth cookie."""

    id: str
    email: str
    name: str | None = None
    roles: list[str] = field(default_factory=list)

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def display_name(self) -> str:
        return self.name or self.email

    @property
    def identity(self) -> str:
        return self.id

    def is_in_role(self, role: str) -> bool:
        return role in self.roles


class CookieAuthentication:
    """Writes, reads and clears the authentication cookie."""

    def __init__(self, settings: Settings) -> None:
        self.cookie_name = settings.AUTH_COOKIE_NAME
        self.max_age = settings.AUTH_COOKIE_EXPIRE_MINUTES * 60
        self.login_path = settings.LOGIN_PATH
        self.logout_path = settings.LOGOUT_PATH
        self.access_denied_path = settings.ACCESS_DENIED_PATH
        self._serializer = URLSafeTimedSerializer(
            settings.SECRET_KEY.get_secret_value(), salt="teatime.auth-cookie"
        )

    def sign_in(
        self,
        response: Response,
        user: ClaimsUser,
        is_persistent: bool = False,
        secure: bool = True,
    ) -> None:
        value = self._serializer.dumps(
            {"id": user.id, "email": user.email, "name": user.name, "roles": user.roles}
        )
        response.set_cookie(
            self.cookie_name,
            value,
            max_age=self.max_age if is_persistent else None,
            httponly=True,
            secure=secure,
            samesite="lax",
        )

    def sign_out(self, response: Response, secure: bool = True) -> None:
        response.delete_cookie(self.cookie_name, httponly=True, secure=secure, samesite="lax")

    def read(self, cookie_value: str) -> ClaimsUser | None:
        try:
            claims = self._serializer.loads(cookie_value, max_age=self.max_age)
            return ClaimsUser(
                id=claims["id"],
                email=claims["email"],
                name=claims.get("name"),
                roles=list(claims.get("roles", [])),
            )
        except (BadSignature, KeyError, TypeError, AttributeError):
            logger.debug("Ignoring invalid authentication cookie")
            return None


class CookieAuthBackend(AuthenticationBackend):
    def __init__(self, cookies: CookieAuthentication) -> None:
        self.cookies = cookies

    async def authenticate(
        self, conn: HTTPConnection
    ) -> tuple[AuthCredentials, BaseUser] | None:
        value = conn.cookies.get(self.cookies.cookie_name)
        if not value:
            return AuthCredentials(), UnauthenticatedUser()
        user = self.cookies.read(value)
        if user is None:
            return AuthCredentials(), UnauthenticatedUser()
        return AuthCredentials(["authenticated", *user.roles]), user

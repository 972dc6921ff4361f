from collections.abc import Awaitable, Callable

from fastapi import Request

from ..errors import AccessDeniedError, LoginRequiredError
from .cookies import ClaimsUser


def _return_url(request: Request) -> str:
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


def authorize(*roles: str) -> Callable[[Request], Awaitable[ClaimsUser]]:
    """
    Build a dependency that requires a signed-in user holding one of ``roles``.

    Runs after routing and after the authentication middleware has populated
    ``request.user``. Anonymous requests raise ``LoginRequiredError``; users
    without any of the roles raise ``AccessDeniedError``.
    """

    async def dependency(request: Request) -> ClaimsUser:
        user = request.user
        if not user.is_authenticated:
            raise LoginRequiredError(_return_url(request))
        if roles and not any(user.is_in_role(role) for role in roles):
            raise AccessDeniedError(_return_url(request))
        return user

    return dependency

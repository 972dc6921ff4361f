"""
HTTP request pipeline.

Stages, outermost first:

1. exception handler (outside development)
2. HSTS (outside development)
3. HTTPS redirection
4. static files, short-circuiting for existing assets
5. session (TempData)
6. authentication from the auth cookie
7. case-insensitive path matching against the registered routes

Routing and authorization follow inside the application: the router matches
the endpoint, then the endpoint's ``authorize(...)`` dependency decides.
"""

import logging
from typing import Any
from urllib.parse import urlencode

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from .config import Settings
from .errors import AccessDeniedError, LoginRequiredError
from .identity.cookies import CookieAuthBackend, CookieAuthentication
from .middleware.exception_handler import ExceptionHandlerMiddleware
from .middleware.hsts import HSTSMiddleware
from .middleware.route_paths import CaseInsensitivePathMiddleware
from .middleware.static_files import StaticFilesMiddleware
from .views import WEB_ROOT, render

logger = logging.getLogger(__name__)


def build_stages(settings: Settings, cookies: CookieAuthentication) -> list[tuple[type, dict[str, Any]]]:
    stages: list[tuple[type, dict[str, Any]]] = []
    if not settings.is_development:
        stages.append((ExceptionHandlerMiddleware, {"error_path": settings.ERROR_PATH}))
        stages.append((HSTSMiddleware, {"max_age_days": settings.HSTS_MAX_AGE_DAYS}))
    if settings.HTTPS_REDIRECTION:
        stages.append((HTTPSRedirectMiddleware, {}))
    stages.append((StaticFilesMiddleware, {"directory": str(WEB_ROOT)}))
    stages.append(
        (
            SessionMiddleware,
            {
                "secret_key": settings.SECRET_KEY.get_secret_value(),
                "session_cookie": settings.SESSION_COOKIE_NAME,
                "same_site": "lax",
                "https_only": settings.HTTPS_REDIRECTION,
            },
        )
    )
    stages.append((AuthenticationMiddleware, {"backend": CookieAuthBackend(cookies)}))
    stages.append((CaseInsensitivePathMiddleware, {}))
    return stages


def configure_pipeline(app: FastAPI, settings: Settings, cookies: CookieAuthentication) -> None:
    # add_middleware wraps the current stack, so install innermost first
    for middleware_class, options in reversed(build_stages(settings, cookies)):
        app.add_middleware(middleware_class, **options)

    @app.exception_handler(LoginRequiredError)
    async def login_required_handler(request: Request, exc: LoginRequiredError) -> RedirectResponse:
        query = urlencode({"ReturnUrl": exc.return_url})
        return RedirectResponse(f"{cookies.login_path}?{query}", status_code=302)

    @app.exception_handler(AccessDeniedError)
    async def access_denied_handler(request: Request, exc: AccessDeniedError) -> RedirectResponse:
        logger.info("Access denied to %s for user %s", exc.return_url, request.user.identity)
        query = urlencode({"ReturnUrl": exc.return_url})
        return RedirectResponse(f"{cookies.access_denied_path}?{query}", status_code=302)

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code != 404:
            return await http_exception_handler(request, exc)
        detail = exc.detail if exc.detail != "Not Found" else None
        return render(request, "shared/not_found.html", {"message": detail}, status_code=404)

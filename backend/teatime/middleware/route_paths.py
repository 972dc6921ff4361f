import re

from starlette.routing import BaseRoute
from starlette.types import ASGIApp, Receive, Scope, Send


class CaseInsensitivePathMiddleware:
    """
    Match request paths against the app's routes ignoring case.

    A path that matches no route exactly but matches one case-insensitively is
    rewritten to the route's own casing, keeping parameter values as sent, so
    ``/customer/home/details/1`` reaches ``/Customer/Home/Details/{id}``.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app
        self._routes: list[BaseRoute] | None = None
        self._route_count = 0
        self._patterns: list[tuple[re.Pattern[str], re.Pattern[str], str]] = []

    def _compile(self, routes: list[BaseRoute]) -> None:
        # Route lists only grow while the app is configured
        if self._routes is routes and self._route_count == len(routes):
            return
        self._routes = routes
        self._route_count = len(routes)
        self._patterns = []
        for route in routes:
            path_regex = getattr(route, "path_regex", None)
            path_format = getattr(route, "path_format", None)
            if path_regex is None or path_format is None:
                continue
            folded = re.compile(path_regex.pattern, re.IGNORECASE)
            self._patterns.append((path_regex, folded, path_format))

    def canonical_path(self, routes: list[BaseRoute], path: str) -> str | None:
        self._compile(routes)
        if any(exact.match(path) for exact, _, _ in self._patterns):
            return None
        for _, folded, path_format in self._patterns:
            match = folded.match(path)
            if match:
                return path_format.format(**match.groupdict())
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and "app" in scope:
            path = self.canonical_path(scope["app"].router.routes, scope["path"])
            if path is not None:
                scope = dict(scope, path=path, raw_path=path.encode())
        await self.app(scope, receive, send)

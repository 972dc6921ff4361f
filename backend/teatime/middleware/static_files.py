import stat

import anyio.to_thread
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Receive, Scope, Send


class StaticFilesMiddleware:
    """
    Serve files from the web root before the rest of the pipeline runs.

    GET/HEAD requests that name an existing file are answered here and never
    reach sessions, authentication or routing; everything else passes through.
    """

    def __init__(self, app: ASGIApp, directory: str) -> None:
        self.app = app
        self.files = StaticFiles(directory=directory)

    async def _is_file(self, scope: Scope) -> bool:
        path = self.files.get_path(scope)
        _, stat_result = await anyio.to_thread.run_sync(self.files.lookup_path, path)
        return stat_result is not None and stat.S_ISREG(stat_result.st_mode)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["method"] in ("GET", "HEAD") and await self._is_file(scope):
            await self.files(scope, receive, send)
            return
        await self.app(scope, receive, send)

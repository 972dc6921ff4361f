import logging

from starlette.responses import RedirectResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class ExceptionHandlerMiddleware:
    """
    Catch unhandled exceptions and send the client to the error page.

    Used outside development. If the response has already started there is
    nothing left to replace, so the exception is re-raised to the server.
    """

    def __init__(self, app: ASGIApp, error_path: str) -> None:
        self.app = app
        self.error_path = error_path

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            logger.exception(
                "Unhandled exception processing %s %s", scope.get("method"), scope.get("path")
            )
            if response_started:
                raise
            response = RedirectResponse(self.error_path, status_code=302)
            await response(scope, receive, send)

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

EXCLUDED_HOSTS = {"localhost", "127.0.0.1", "[::1]"}


def _hostname(host: str) -> str:
    if host.endswith("]"):
        return host
    return host.rsplit(":", 1)[0]


class HSTSMiddleware:
    """Add Strict-Transport-Security to HTTPS responses, except for local hosts."""

    def __init__(self, app: ASGIApp, max_age_days: int = 30, include_subdomains: bool = False) -> None:
        self.app = app
        value = f"max-age={max_age_days * 24 * 60 * 60}"
        if include_subdomains:
            value += "; includeSubDomains"
        self.header_value = value

    def _applies(self, scope: Scope) -> bool:
        if scope["type"] != "http" or scope.get("scheme") != "https":
            return False
        host = Headers(scope=scope).get("host", "")
        return _hostname(host).lower() not in EXCLUDED_HOSTS

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if not self._applies(scope):
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers["Strict-Transport-Security"] = self.header_value
            await send(message)

        await self.app(scope, receive, send_wrapper)

from starlette.types import ASGIApp, Message, Receive, Scope, Send

_DEFAULT_HEADERS: tuple[tuple[bytes, bytes], ...] = (
    (b"x-content-type-options", b"nosniff"),
    (b"x-frame-options", b"DENY"),
    (b"referrer-policy", b"no-referrer"),
    (b"cross-origin-opener-policy", b"same-origin"),
)
_HSTS = (b"strict-transport-security", b"max-age=63072000; includeSubDomains")


class SecurityHeadersMiddleware:
    """Add baseline security headers unless the route already set them."""

    def __init__(
        self,
        app: ASGIApp,
        enable_hsts: bool = False,
        content_security_policy: str | None = None,
    ) -> None:
        self.app = app
        extra = list(_DEFAULT_HEADERS)
        if enable_hsts:
            extra.append(_HSTS)
        if content_security_policy:
            extra.append((b"content-security-policy", content_security_policy.encode()))
        self.headers = extra

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                current = list(message.get("headers", []))
                present = {key.lower() for key, _ in current}
                current.extend((key, value) for key, value in self.headers if key not in present)
                message["headers"] = current
            await send(message)

        await self.app(scope, receive, send_with_headers)

from agrismart.core.logger import logger

class ExceptionLoggingMiddleware:
    """
    ASGI middleware that logs unhandled exceptions with full stack trace.
    Re-raises so Starlette can still produce the 500 response.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] not in ("http", "websocket"):
            return await self.app(scope, receive, send)

        try:
            await self.app(scope, receive, send)
        except Exception:
            logger.exception(
                "Unhandled exception in request",
                extra={
                    "request_id": scope.get("request_id"),
                    "method": scope.get("method"),
                    "path": scope.get("path"),
                },
            )
            raise

"""
Per-request diagnostics: SQL statement counting and response timing.

Every response carries ``X-Response-Time-Ms`` and ``X-Query-Count``.  A
rendered feed page and the GraphQL request behind it should report the
same small, constant number of statements however many items the page
holds.
"""
import logging
import time
from contextvars import ContextVar

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

query_count_var: ContextVar[int] = ContextVar("query_count", default=0)

RESPONSE_TIME_HEADER = b"x-response-time-ms"
QUERY_COUNT_HEADER = b"x-query-count"


def install_query_counter(engine: AsyncEngine) -> None:
    """Count every statement *engine* sends, eager-load SELECTs included."""

    def _on_execute(conn, cursor, statement, parameters, context, executemany):
        query_count_var.set(query_count_var.get() + 1)

    event.listen(engine.sync_engine, "before_cursor_execute", _on_execute)


class TimingMiddleware:
    """
    Pure ASGI middleware; the counter lives in a ContextVar, so the
    inner app must run in this task rather than a child one.
    """

    def __init__(self, app: ASGIApp, slow_request_ms: float = 1000.0) -> None:
        self.app = app
        self.slow_request_ms = slow_request_ms

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        token = query_count_var.set(0)
        started = time.perf_counter()

        async def send_with_stats(message: Message) -> None:
            if message["type"] == "http.response.start":
                elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
                statements = query_count_var.get()
                message["headers"] = [
                    *message.get("headers", []),
                    (RESPONSE_TIME_HEADER, str(elapsed_ms).encode()),
                    (QUERY_COUNT_HEADER, str(statements).encode()),
                ]
                level = logging.WARNING if elapsed_ms >= self.slow_request_ms else logging.DEBUG
                logger.log(
                    level,
                    "%s %s %s %.1fms %d queries",
                    scope.get("method"),
                    scope.get("path"),
                    message.get("status"),
                    elapsed_ms,
                    statements,
                )
            await send(message)

        try:
            await self.app(scope, receive, send_with_stats)
        finally:
            query_count_var.reset(token)

"""
Per-request diagnostics: SQL statement count and wall time.

Both travel back to the client as ``X-Query-Count`` and
``X-Response-Time-Ms`` and are written to the ``quill.access`` logger,
one line per request::

    GET /api/articles -> 200 in 4.12 ms (5 queries)
"""
import logging
import time
from contextvars import ContextVar

from sqlalchemy import event
from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

access_logger = logging.getLogger("quill.access")

query_count_var: ContextVar[int] = ContextVar("query_count", default=0)


def install_query_counter(engine) -> None:
    """
    Bump ``query_count_var`` on every statement *engine* sends, eager-load
    selects included.  The production engine registers this in
    ``quill.database``; the test engine in ``tests/conftest.py``.
    """

    def _on_execute(conn, cursor, statement, parameters, context, executemany):
        query_count_var.set(query_count_var.get() + 1)

    event.listen(engine.sync_engine, "before_cursor_execute", _on_execute)


class RequestLogMiddleware:
    # Plain ASGI: the app runs in this task, so its ContextVar writes are
    # visible here when the response starts.

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        query_count_var.set(0)
        started = time.perf_counter()
        status = 500

        def elapsed_ms() -> float:
            return (time.perf_counter() - started) * 1000

        async def send_with_diagnostics(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
                headers = MutableHeaders(scope=message)
                headers.append("X-Response-Time-Ms", f"{elapsed_ms():.2f}")
                headers.append("X-Query-Count", str(query_count_var.get()))
            await send(message)

        try:
            await self.app(scope, receive, send_with_diagnostics)
        finally:
            access_logger.info(
                "%s %s -> %d in %.2f ms (%d queries)",
                scope["method"], scope["path"], status, elapsed_ms(), query_count_var.get(),
            )

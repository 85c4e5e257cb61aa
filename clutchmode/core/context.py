"""Per-request context utilities."""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
session_id_ctx_var: ContextVar[str | None] = ContextVar("session_id", default=None)


def get_request_id() -> str | None:
    """Return the current request id if available."""
    return request_id_ctx_var.get()


def get_session_id() -> str | None:
    """Return the planning session bound to the current context, if any."""
    return session_id_ctx_var.get()


@contextmanager
def bind_session_id(session_id: str) -> Iterator[None]:
    """Tag log records emitted inside the block with ``session_id``."""
    token = session_id_ctx_var.set(session_id)
    try:
        yield
    finally:
        session_id_ctx_var.reset(token)

"""Tracing utilities wrapping Opik."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from clutchmode.core.context import get_request_id, get_session_id
from clutchmode.observability import client as opik_client

logger = logging.getLogger(__name__)


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    session_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Iterator[Optional[Any]]:
    """
    Create an Opik trace context manager.

    Session and request ids default to the ones bound in the current context.
    When Opik is disabled the context yields ``None`` and records nothing.
    """
    client = opik_client.get_opik_client()
    opik_trace = None

    if client:
        trace_metadata = dict(metadata or {})
        session_id = session_id or get_session_id()
        request_id = request_id or get_request_id()
        if session_id:
            trace_metadata.setdefault("session_id", session_id)
        if request_id:
            trace_metadata.setdefault("request_id", request_id)
        try:
            opik_trace = client.trace(name=name, metadata=trace_metadata or None)
        except Exception as exc:  # pragma: no cover - tracing must not break requests
            logger.debug("Unable to start Opik trace %s: %s", name, exc)
            opik_trace = None

    try:
        yield opik_trace
    except Exception as exc:
        if opik_trace:
            try:
                opik_trace.update(error_info={"message": str(exc)})
            except Exception:  # pragma: no cover
                logger.debug("Failed to attach error info to Opik trace %s", name, exc_info=True)
        raise
    finally:
        if opik_trace:
            try:
                opik_trace.end()
            except Exception:  # pragma: no cover
                logger.debug("Failed to close Opik trace %s cleanly", name, exc_info=True)

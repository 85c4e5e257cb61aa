"""Planning session lifecycle endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status

from clutchmode.api.deps import load_session, request_id_of, session_response
from clutchmode.api.schemas.session import SessionResponse
from clutchmode.core.context import bind_session_id
from clutchmode.observability.metrics import log_metric
from clutchmode.observability.tracing import trace
from clutchmode.services.generator.base import PlanGenerator
from clutchmode.services.generator.factory import get_plan_generator
from clutchmode.services.session_store import SessionStore, get_session_store

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    generator: PlanGenerator = Depends(get_plan_generator),
) -> SessionResponse:
    """Open a new planning session with an empty intake."""
    session = store.create(generator)
    with bind_session_id(session.id), trace("session.create"):
        log_metric("session.created", 1, metadata={"live_sessions": len(store)})
        return session_response(session, request_id_of(request))


@router.get("/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, request: Request, store: SessionStore = Depends(get_session_store)) -> SessionResponse:
    session = load_session(store, session_id)
    return session_response(session, request_id_of(request))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(session_id: str, store: SessionStore = Depends(get_session_store)) -> Response:
    session = load_session(store, session_id)
    store.discard(session.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{session_id}/reset", response_model=SessionResponse)
def reset_session(session_id: str, request: Request, store: SessionStore = Depends(get_session_store)) -> SessionResponse:
    """Discard plan, constraints and conversation in one step."""
    session = load_session(store, session_id)
    with bind_session_id(session.id), trace("session.reset"):
        session.reset()
        log_metric("session.reset", 1)
    return session_response(session, request_id_of(request))

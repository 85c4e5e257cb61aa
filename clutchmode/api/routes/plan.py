"""Plan viewing, status-update replans and chat adjustments."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from clutchmode.api.deps import load_session, outcome_response, request_id_of, state_error
from clutchmode.api.schemas.plan import ChatRequestPayload, PlanView, ReplanDelta
from clutchmode.api.schemas.session import OutcomeResponse
from clutchmode.core.context import bind_session_id
from clutchmode.core.errors import PlanStateError
from clutchmode.observability.metrics import log_metric
from clutchmode.observability.tracing import trace
from clutchmode.services.plan_presenter import present_plan
from clutchmode.services.session_store import SessionStore, get_session_store

router = APIRouter(prefix="/sessions/{session_id}", tags=["plan"])


@router.get("/plan", response_model=PlanView)
def get_plan(session_id: str, store: SessionStore = Depends(get_session_store)) -> PlanView:
    session = load_session(store, session_id)
    plan = session.controller.plan
    if plan is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No plan yet")
    return present_plan(plan)


@router.post("/plan/retry", response_model=OutcomeResponse)
def retry_plan(session_id: str, request: Request, store: SessionStore = Depends(get_session_store)) -> OutcomeResponse:
    """Re-run the first synthesis after a failure, reusing the submitted constraints."""
    session = load_session(store, session_id)
    request_id = request_id_of(request)
    with bind_session_id(session.id), trace("plan.retry", request_id=request_id):
        try:
            result = session.controller.retry_initial()
        except PlanStateError as exc:
            raise state_error(exc)
        return outcome_response(session, result, request_id)


@router.post("/replan", response_model=OutcomeResponse)
def replan(
    session_id: str,
    payload: ReplanDelta,
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> OutcomeResponse:
    """Report progress and get a wholly new plan from now."""
    session = load_session(store, session_id)
    request_id = request_id_of(request)
    metadata = {"current_energy": payload.current_energy}
    with bind_session_id(session.id), trace("plan.replan", metadata=metadata, request_id=request_id):
        try:
            result = session.controller.submit_status_update(payload)
        except PlanStateError as exc:
            raise state_error(exc)
        log_metric("plan.replan.outcome", 1, metadata={"outcome": result.outcome.value})
        return outcome_response(session, result, request_id)


@router.post("/chat", response_model=OutcomeResponse)
def chat(
    session_id: str,
    payload: ChatRequestPayload,
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> OutcomeResponse:
    """Send a free-form message; the plan changes only if the reply carries one."""
    session = load_session(store, session_id)
    request_id = request_id_of(request)
    metadata = {"message_length": len(payload.message)}
    with bind_session_id(session.id), trace("plan.chat", metadata=metadata, request_id=request_id):
        try:
            result = session.controller.submit_chat_message(payload.message)
        except PlanStateError as exc:
            raise state_error(exc)
        log_metric("plan.chat.outcome", 1, metadata={"outcome": result.outcome.value})
        return outcome_response(session, result, request_id)

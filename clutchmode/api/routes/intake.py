"""Intake wizard endpoints: draft edits, navigation and submission."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from clutchmode.api.deps import (
    editable_wizard,
    intake_error,
    load_session,
    outcome_response,
    request_id_of,
    session_response,
    state_error,
)
from clutchmode.api.schemas.constraints import FixedCommitmentPayload, IntakeUpdate, WorkingWindowPayload
from clutchmode.api.schemas.session import OutcomeResponse, SessionResponse
from clutchmode.core.context import bind_session_id
from clutchmode.core.errors import IntakeValidationError, PlanStateError
from clutchmode.observability.tracing import trace
from clutchmode.services.replan_controller import Outcome
from clutchmode.services.session_store import SessionStore, get_session_store

router = APIRouter(prefix="/sessions/{session_id}/intake", tags=["intake"])


@router.patch("", response_model=SessionResponse)
def update_intake(
    session_id: str,
    payload: IntakeUpdate,
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    session = load_session(store, session_id)
    editable_wizard(session).update(**payload.model_dump(exclude_unset=True))
    return session_response(session, request_id_of(request))


@router.post("/windows", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def add_working_window(
    session_id: str,
    payload: WorkingWindowPayload,
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    session = load_session(store, session_id)
    editable_wizard(session).add_working_window(**payload.model_dump())
    return session_response(session, request_id_of(request))


@router.patch("/windows/{window_id}", response_model=SessionResponse)
def update_working_window(
    session_id: str,
    window_id: str,
    payload: WorkingWindowPayload,
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    session = load_session(store, session_id)
    try:
        editable_wizard(session).update_working_window(window_id, **payload.model_dump())
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Working window not found")
    return session_response(session, request_id_of(request))


@router.delete("/windows/{window_id}", response_model=SessionResponse)
def remove_working_window(
    session_id: str,
    window_id: str,
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    session = load_session(store, session_id)
    try:
        editable_wizard(session).remove_working_window(window_id)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Working window not found")
    return session_response(session, request_id_of(request))


@router.post("/commitments", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def add_commitment(
    session_id: str,
    payload: FixedCommitmentPayload,
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    session = load_session(store, session_id)
    editable_wizard(session).add_commitment(**payload.model_dump())
    return session_response(session, request_id_of(request))


@router.patch("/commitments/{commitment_id}", response_model=SessionResponse)
def update_commitment(
    session_id: str,
    commitment_id: str,
    payload: FixedCommitmentPayload,
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    session = load_session(store, session_id)
    try:
        editable_wizard(session).update_commitment(commitment_id, **payload.model_dump())
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Commitment not found")
    return session_response(session, request_id_of(request))


@router.delete("/commitments/{commitment_id}", response_model=SessionResponse)
def remove_commitment(
    session_id: str,
    commitment_id: str,
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    session = load_session(store, session_id)
    try:
        editable_wizard(session).remove_commitment(commitment_id)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Commitment not found")
    return session_response(session, request_id_of(request))


@router.post("/next", response_model=SessionResponse)
def next_step(session_id: str, request: Request, store: SessionStore = Depends(get_session_store)) -> SessionResponse:
    session = load_session(store, session_id)
    try:
        editable_wizard(session).advance()
    except IntakeValidationError as exc:
        raise intake_error(exc)
    return session_response(session, request_id_of(request))


@router.post("/back", response_model=SessionResponse)
def previous_step(session_id: str, request: Request, store: SessionStore = Depends(get_session_store)) -> SessionResponse:
    session = load_session(store, session_id)
    editable_wizard(session).back()
    return session_response(session, request_id_of(request))


@router.post("/goto/{step}", response_model=SessionResponse)
def goto_step(
    session_id: str,
    step: int,
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    session = load_session(store, session_id)
    if not 0 <= step <= 4:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Unknown intake step")
    try:
        editable_wizard(session).jump_to(step)
    except IntakeValidationError as exc:
        raise intake_error(exc)
    return session_response(session, request_id_of(request))


@router.post("/submit", response_model=OutcomeResponse)
def submit_intake(session_id: str, request: Request, store: SessionStore = Depends(get_session_store)) -> OutcomeResponse:
    """Finish the intake and synthesize the first plan."""
    session = load_session(store, session_id)
    request_id = request_id_of(request)
    with bind_session_id(session.id), trace("intake.submit", request_id=request_id):
        wizard = editable_wizard(session)
        try:
            constraints = wizard.finish()
        except IntakeValidationError as exc:
            raise intake_error(exc)
        try:
            result = session.controller.generate_initial(constraints)
        except PlanStateError as exc:
            wizard.generating = False
            raise state_error(exc)
        # A busy rejection leaves the flag to the submit that is still generating.
        if result.outcome != Outcome.BUSY:
            wizard.generating = False
        return outcome_response(session, result, request_id)

"""Shared helpers for session routes: lookup, snapshots and error mapping."""
from __future__ import annotations

from fastapi import HTTPException, Request, status

from clutchmode.api.schemas.session import IntakeStatus, OutcomeResponse, PlanReviewPayload, SessionResponse
from clutchmode.core.errors import IntakeValidationError, PlanStateError, SessionNotFoundError
from clutchmode.services.intake_wizard import STEP_LABELS, IntakeWizard
from clutchmode.services.plan_presenter import present_plan
from clutchmode.services.plan_review import review_plan
from clutchmode.services.replan_controller import ControllerResult, Outcome
from clutchmode.services.session_store import ClutchSession, SessionStore

RETRY_MESSAGE = "Plan unavailable, please retry."
BUSY_MESSAGE = "Still working on your last update, please wait."


def load_session(store: SessionStore, session_id: str) -> ClutchSession:
    try:
        return store.get(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def request_id_of(request: Request) -> str:
    return getattr(request.state, "request_id", None) or ""


def session_response(session: ClutchSession, request_id: str = "") -> SessionResponse:
    snapshot, wizard = session.snapshot()
    plan_view = None
    review = None
    if snapshot.plan is not None:
        plan_view = present_plan(snapshot.plan)
        if snapshot.constraints is not None:
            findings = review_plan(snapshot.plan, snapshot.constraints, wizard.clock())
            review = PlanReviewPayload(clean=findings.clean, warnings=findings.warnings)
    return SessionResponse(
        session_id=session.id,
        state=snapshot.state.value,
        intake=_intake_status(wizard),
        constraints=snapshot.constraints,
        plan=snapshot.plan,
        plan_view=plan_view,
        review=review,
        messages=list(snapshot.messages),
        last_error=snapshot.last_error,
        request_id=request_id,
    )


def outcome_response(session: ClutchSession, result: ControllerResult, request_id: str = "") -> OutcomeResponse:
    """Translate a controller result, raising for failures and busy rejections."""
    if result.outcome == Outcome.BUSY:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=BUSY_MESSAGE)
    if result.outcome == Outcome.FAILED:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": RETRY_MESSAGE, "reason": result.reason, "retryable": True},
        )
    return OutcomeResponse(
        outcome=result.outcome.value,
        message=result.message,
        session=session_response(session, request_id),
    )


def editable_wizard(session: ClutchSession) -> IntakeWizard:
    if session.controller.plan is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Intake is locked once a plan exists; reset to start over.")
    return session.wizard


def intake_error(exc: IntakeValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"step": int(exc.step), "message": exc.message},
    )


def state_error(exc: PlanStateError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


def _intake_status(wizard: IntakeWizard) -> IntakeStatus:
    return IntakeStatus(
        step=int(wizard.step),
        step_label=STEP_LABELS[wizard.step],
        can_proceed=wizard.can_proceed(),
        generating=wizard.generating,
        draft=wizard.draft,
    )

"""Owns the current plan and drives generation, replanning and chat.

State machine::

    NO_PLAN -> GENERATING -> HAS_PLAN <-> REPLANNING

Only one generator call may be outstanding per controller; a second call made
meanwhile is answered with ``busy`` without touching the generator. Every call
takes a sequence number and its response is applied only if that number is
still the latest, so a response that lands after ``reset`` (or after a newer
request) is discarded as ``stale``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Optional, Tuple

from clutchmode.api.schemas.constraints import ConstraintModel
from clutchmode.api.schemas.plan import ConversationMessage, PlanModel, ReplanDelta
from clutchmode.core.errors import PlanStateError
from clutchmode.observability.metrics import log_metric, timed
from clutchmode.observability.tracing import trace
from clutchmode.services.conversation_log import GREETING, ConversationLog
from clutchmode.services.generator.base import (
    ChatRequest,
    GenerationFailure,
    GenerationOutcome,
    GenerationRequest,
    InitialRequest,
    PlanGenerator,
    ReplanRequest,
)

logger = logging.getLogger(__name__)


class PlanState(str, Enum):
    NO_PLAN = "no_plan"
    GENERATING = "generating"
    HAS_PLAN = "has_plan"
    REPLANNING = "replanning"


class Outcome(str, Enum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"
    BUSY = "busy"
    STALE = "stale"


@dataclass
class ControllerResult:
    outcome: Outcome
    plan: Optional[PlanModel]
    message: Optional[ConversationMessage] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ControllerSnapshot:
    state: PlanState
    constraints: Optional[ConstraintModel]
    plan: Optional[PlanModel]
    messages: Tuple[ConversationMessage, ...]
    last_error: Optional[str]


class ReplanController:
    def __init__(self, generator: PlanGenerator):
        self._generator = generator
        self._lock = Lock()
        self._state = PlanState.NO_PLAN
        self._constraints: Optional[ConstraintModel] = None
        self._plan: Optional[PlanModel] = None
        self._log = ConversationLog()
        self._in_flight = False
        self._sequence = 0
        self._last_error: Optional[str] = None

    # -- read access ---------------------------------------------------

    @property
    def state(self) -> PlanState:
        return self._state

    @property
    def plan(self) -> Optional[PlanModel]:
        return self._plan

    @property
    def constraints(self) -> Optional[ConstraintModel]:
        return self._constraints

    @property
    def messages(self) -> Tuple[ConversationMessage, ...]:
        return self._log.messages

    @property
    def busy(self) -> bool:
        return self._in_flight

    def snapshot(self) -> ControllerSnapshot:
        with self._lock:
            return ControllerSnapshot(
                state=self._state,
                constraints=self._constraints,
                plan=self._plan,
                messages=self._log.messages,
                last_error=self._last_error,
            )

    # -- entry points --------------------------------------------------

    def generate_initial(self, constraints: ConstraintModel) -> ControllerResult:
        """First synthesis. Constraints are kept even if the call fails."""
        with self._lock:
            if self._in_flight:
                return self._busy()
            if self._plan is not None:
                raise PlanStateError("A plan already exists; reset the session to start over.")
            self._constraints = constraints
            sequence = self._begin(PlanState.GENERATING)

        outcome = self._call(InitialRequest(constraints=constraints), sequence)
        return self._apply_plan_outcome(outcome, sequence)

    def retry_initial(self) -> ControllerResult:
        with self._lock:
            constraints = self._constraints
        if constraints is None:
            raise PlanStateError("Nothing to retry; submit the intake first.")
        return self.generate_initial(constraints)

    def submit_status_update(self, delta: ReplanDelta) -> ControllerResult:
        with self._lock:
            if self._in_flight:
                return self._busy()
            constraints, plan = self._require_plan()
            sequence = self._begin(PlanState.REPLANNING)

        request = ReplanRequest(constraints=constraints, current_plan=plan, delta=delta)
        outcome = self._call(request, sequence)
        return self._apply_plan_outcome(outcome, sequence)

    def submit_chat_message(self, text: str) -> ControllerResult:
        content = text.strip()
        if not content:
            raise PlanStateError("Message must not be empty.")

        with self._lock:
            if self._in_flight:
                return self._busy()
            constraints, plan = self._require_plan()
            sequence = self._begin(PlanState.REPLANNING)
            # Optimistic: the message stays in the log even if the call fails.
            self._log.append_user(content)
            conversation = self._log.as_chat_turns()

        request = ChatRequest(constraints=constraints, current_plan=plan, conversation=conversation)
        outcome = self._call(request, sequence)

        with self._lock:
            if sequence != self._sequence:
                return self._stale(request.mode)
            self._in_flight = False
            self._state = PlanState.HAS_PLAN
            if isinstance(outcome, GenerationFailure):
                self._last_error = outcome.reason
                return ControllerResult(outcome=Outcome.FAILED, plan=self._plan, reason=outcome.reason)

            self._last_error = None
            reply = self._log.append_assistant(outcome.message, outcome.plan)
            if outcome.plan is None:
                return ControllerResult(outcome=Outcome.UNCHANGED, plan=self._plan, message=reply)
            self._plan = outcome.plan
            return ControllerResult(outcome=Outcome.UPDATED, plan=self._plan, message=reply)

    def reset(self) -> None:
        """Drop plan, constraints and conversation together."""
        with self._lock:
            self._sequence += 1
            self._in_flight = False
            self._state = PlanState.NO_PLAN
            self._constraints = None
            self._plan = None
            self._log.clear()
            self._last_error = None
        logger.info("Planning session reset")

    # -- internals (callers hold the lock unless noted) -----------------

    def _begin(self, transient: PlanState) -> int:
        self._in_flight = True
        self._sequence += 1
        self._state = transient
        return self._sequence

    def _require_plan(self) -> Tuple[ConstraintModel, PlanModel]:
        if self._plan is None or self._constraints is None:
            raise PlanStateError("No plan yet; generate one first.")
        return self._constraints, self._plan

    def _busy(self) -> ControllerResult:
        log_metric("clutch.request.busy", 1, metadata={"state": self._state.value})
        return ControllerResult(outcome=Outcome.BUSY, plan=self._plan, reason="A plan update is already in progress.")

    def _stale(self, mode: str) -> ControllerResult:
        logger.info("Discarding stale %s response", mode)
        log_metric("clutch.response.stale", 1, metadata={"mode": mode})
        return ControllerResult(outcome=Outcome.STALE, plan=self._plan)

    def _call(self, request: GenerationRequest, sequence: int) -> GenerationOutcome:
        """Run the generator without holding the lock."""
        metadata = {"mode": request.mode, "sequence": sequence}
        with trace(f"clutch.{request.mode}", metadata=metadata), timed(f"clutch.{request.mode}", metadata):
            try:
                outcome = self._generator.generate(request)
            except Exception as exc:
                # A raising provider must not leave the in-flight flag set.
                logger.exception("Plan generator raised on %s request %d", request.mode, sequence)
                outcome = GenerationFailure(reason=str(exc) or exc.__class__.__name__)
        success = not isinstance(outcome, GenerationFailure)
        log_metric(f"clutch.{request.mode}.success", 1 if success else 0)
        if not success:
            logger.warning("%s request %d failed: %s", request.mode, sequence, outcome.reason)
        return outcome

    def _apply_plan_outcome(self, outcome: GenerationOutcome, sequence: int) -> ControllerResult:
        with self._lock:
            if sequence != self._sequence:
                return self._stale("plan")
            self._in_flight = False
            if isinstance(outcome, GenerationFailure):
                self._state = PlanState.HAS_PLAN if self._plan is not None else PlanState.NO_PLAN
                self._last_error = outcome.reason
                return ControllerResult(outcome=Outcome.FAILED, plan=self._plan, reason=outcome.reason)

            mode_is_initial = self._plan is None
            self._plan = outcome.plan
            self._state = PlanState.HAS_PLAN
            self._last_error = None
            if mode_is_initial and len(self._log) == 0:
                self._log.append_assistant(GREETING)
            plan = self._plan
        logger.info("Plan %s with %d blocks", "created" if mode_is_initial else "replaced", len(plan.schedule_blocks))
        return ControllerResult(outcome=Outcome.UPDATED, plan=plan)

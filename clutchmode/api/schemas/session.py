"""Schemas for planning session endpoints."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field, model_validator

from clutchmode.api.schemas.constraints import CamelModel, ConstraintModel, IntakeDraft
from clutchmode.api.schemas.plan import ChatTurn, ConversationMessage, PlanModel, PlanView, ReplanDelta
from clutchmode.services.generator.base import ChatRequest, GenerationRequest, InitialRequest, ReplanRequest


class IntakeStatus(CamelModel):
    step: int
    step_label: str
    can_proceed: bool
    generating: bool
    draft: IntakeDraft


class PlanReviewPayload(CamelModel):
    clean: bool
    warnings: List[str] = Field(default_factory=list)


class SessionResponse(CamelModel):
    session_id: str
    state: Literal["no_plan", "generating", "has_plan", "replanning"]
    intake: IntakeStatus
    constraints: Optional[ConstraintModel] = None
    plan: Optional[PlanModel] = None
    plan_view: Optional[PlanView] = None
    review: Optional[PlanReviewPayload] = None
    messages: List[ConversationMessage] = Field(default_factory=list)
    last_error: Optional[str] = None
    request_id: str = ""


class OutcomeResponse(CamelModel):
    outcome: Literal["updated", "unchanged", "stale"]
    message: Optional[ConversationMessage] = None
    session: SessionResponse


class GenerateRequestPayload(CamelModel):
    """Wire request accepted by the generator endpoint."""

    mode: Literal["initial", "replan", "chat"]
    constraints: ConstraintModel
    plan: Optional[PlanModel] = None
    delta: Optional[ReplanDelta] = None
    conversation: List[ChatTurn] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_mode_fields(self) -> "GenerateRequestPayload":
        if self.mode in {"replan", "chat"} and self.plan is None:
            raise ValueError(f"plan is required for {self.mode} requests")
        if self.mode == "replan" and self.delta is None:
            raise ValueError("delta is required for replan requests")
        return self

    def to_request(self) -> GenerationRequest:
        if self.mode == "replan":
            return ReplanRequest(constraints=self.constraints, current_plan=self.plan, delta=self.delta)
        if self.mode == "chat":
            return ChatRequest(constraints=self.constraints, current_plan=self.plan, conversation=list(self.conversation))
        return InitialRequest(constraints=self.constraints)


class GenerateResponsePayload(CamelModel):
    plan: Optional[PlanModel] = None
    message: Optional[str] = None
    updated_plan: Optional[PlanModel] = None

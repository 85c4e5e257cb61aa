"""Plan generator interface and the request/outcome types it speaks.

Every provider implements ``_generate`` and lets ``generate`` turn errors and
malformed replies into a ``GenerationFailure``. Callers treat every failure the
same way: leave plan and conversation state alone and offer a retry.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union

from clutchmode.api.schemas.constraints import ConstraintModel
from clutchmode.api.schemas.plan import ChatTurn, PlanModel, ReplanDelta

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InitialRequest:
    constraints: ConstraintModel

    mode: ClassVar[str] = "initial"

    def to_payload(self) -> Dict[str, Any]:
        return {"mode": self.mode, "constraints": self.constraints.model_dump(mode="json", by_alias=True)}


@dataclass(frozen=True)
class ReplanRequest:
    constraints: ConstraintModel
    current_plan: PlanModel
    delta: ReplanDelta

    mode: ClassVar[str] = "replan"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "constraints": self.constraints.model_dump(mode="json", by_alias=True),
            "plan": self.current_plan.model_dump(mode="json", by_alias=True),
            "delta": self.delta.model_dump(mode="json", by_alias=True),
        }


@dataclass(frozen=True)
class ChatRequest:
    constraints: ConstraintModel
    current_plan: PlanModel
    conversation: List[ChatTurn] = field(default_factory=list)

    mode: ClassVar[str] = "chat"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "constraints": self.constraints.model_dump(mode="json", by_alias=True),
            "plan": self.current_plan.model_dump(mode="json", by_alias=True),
            "conversation": [turn.model_dump(mode="json") for turn in self.conversation],
        }


GenerationRequest = Union[InitialRequest, ReplanRequest, ChatRequest]


@dataclass(frozen=True)
class GenerationSuccess:
    plan: Optional[PlanModel] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class GenerationFailure:
    reason: str


GenerationOutcome = Union[GenerationSuccess, GenerationFailure]


class PlanGenerator:
    """Base interface for plan generation providers."""

    def generate(self, request: GenerationRequest) -> GenerationOutcome:
        try:
            success = self._generate(request)
        except Exception as exc:
            logger.warning("Plan generator %s request failed: %s", request.mode, exc)
            return GenerationFailure(reason=str(exc) or exc.__class__.__name__)

        if success.plan is None and not isinstance(request, ChatRequest):
            logger.warning("Plan generator returned no plan for a %s request", request.mode)
            return GenerationFailure(reason="Generator response contained no plan")
        return success

    def _generate(self, request: GenerationRequest) -> GenerationSuccess:
        raise NotImplementedError

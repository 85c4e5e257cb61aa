"""Schemas for generated plans, replan deltas and chat messages."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from clutchmode.api.schemas.constraints import CamelModel

BlockType = Literal["work", "break", "admin", "buffer"]
Role = Literal["user", "assistant"]


class FrozenCamelModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Priority(FrozenCamelModel):
    task: str
    reason: str = ""
    estimated_minutes: int = Field(..., ge=0)


class ScheduleBlock(FrozenCamelModel):
    """One time-boxed entry; end after start is expected but not enforced."""

    start_time: datetime
    end_time: datetime
    label: str
    type: BlockType = "work"

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class StarterStep(FrozenCamelModel):
    step: str
    minutes: int = Field(..., ge=0)


class PlanModel(FrozenCamelModel):
    """Structured plan as produced by the generator; replaced wholesale."""

    summary: str
    top_priorities: List[Priority] = Field(default_factory=list)
    schedule_blocks: List[ScheduleBlock] = Field(default_factory=list)
    next_60_minutes: List[StarterStep] = Field(default_factory=list, alias="next60Minutes")
    two_minute_start: str = ""
    if_behind_plan: List[str] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)


class ReplanDelta(CamelModel):
    completed_tasks: str = ""
    remaining_time: str = ""
    current_energy: int = Field(5, ge=1, le=10)


class ChatTurn(FrozenCamelModel):
    role: Role
    content: str


class ConversationMessage(FrozenCamelModel):
    id: str
    sequence: int
    role: Role
    content: str
    updated_plan: Optional[PlanModel] = None


class ChatRequestPayload(CamelModel):
    message: str = Field(..., min_length=1, max_length=4000)


class PresentedBlock(CamelModel):
    start_time: datetime
    end_time: datetime
    label: str
    type: BlockType
    type_label: str
    time_range: str
    duration_minutes: float


class DayGroup(CamelModel):
    date: str
    label: str
    blocks: List[PresentedBlock]


class PlanView(CamelModel):
    summary: str
    top_priorities: List[Priority]
    total_priority_minutes: int
    next_60_minutes: List[StarterStep] = Field(alias="next60Minutes")
    two_minute_start: str
    days: List[DayGroup]
    if_behind_plan: List[str]
    notes: List[str]

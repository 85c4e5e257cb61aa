"""Pydantic schemas for the planning constraints collected at intake."""
from __future__ import annotations

import datetime as dt
from datetime import date, datetime, time
from typing import Dict, List, Literal, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

FocusMethod = Literal["25/5", "50/10", "90/15"]

FOCUS_METHODS: Dict[str, Tuple[int, int]] = {
    "25/5": (25, 5),
    "50/10": (50, 10),
    "90/15": (90, 15),
}

DEFAULT_DEADLINE_TIME = time(23, 59)
MAX_TOP_OUTCOMES = 3


def new_entry_id() -> str:
    return uuid4().hex[:8]


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WorkingWindow(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=new_entry_id)
    date: date
    start_time: time = time(9, 0)
    end_time: time = time(17, 0)


class FixedCommitment(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=new_entry_id)
    label: str = ""
    date: date
    start_time: time = time(9, 0)
    end_time: time = time(10, 0)


class ConstraintModel(CamelModel):
    """The planning problem handed to the generator. Immutable once built."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    deadline: date
    deadline_time: time = DEFAULT_DEADLINE_TIME
    working_windows: Tuple[WorkingWindow, ...] = Field(..., min_length=1)
    fixed_commitments: Tuple[FixedCommitment, ...] = ()
    min_sleep_hours: float = Field(6, ge=3, le=10)
    focus_method: FocusMethod = "25/5"
    energy_level: int = Field(5, ge=1, le=10)
    brain_dump: str
    top_outcomes: Tuple[str, ...] = Field(..., min_length=1, max_length=MAX_TOP_OUTCOMES)
    done_enough: str

    @field_validator("min_sleep_hours")
    @classmethod
    def _half_hour_steps(cls, value: float) -> float:
        if not float(value * 2).is_integer():
            raise ValueError("min_sleep_hours must be a multiple of 0.5")
        return value

    @field_validator("brain_dump", "done_enough")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("top_outcomes")
    @classmethod
    def _outcomes_not_blank(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if any(not outcome.strip() for outcome in value):
            raise ValueError("outcomes must not be empty")
        return value

    @property
    def deadline_at(self) -> datetime:
        return datetime.combine(self.deadline, self.deadline_time)

    @property
    def focus_minutes(self) -> Tuple[int, int]:
        """Work/break minute pair for the chosen focus method."""
        return FOCUS_METHODS[self.focus_method]


class IntakeDraft(CamelModel):
    """Mutable intake state; every field has a default except the deadline."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, validate_assignment=True)

    deadline: Optional[date] = None
    deadline_time: time = DEFAULT_DEADLINE_TIME
    working_windows: List[WorkingWindow] = Field(default_factory=list)
    fixed_commitments: List[FixedCommitment] = Field(default_factory=list)
    min_sleep_hours: float = Field(6, ge=3, le=10)
    focus_method: FocusMethod = "25/5"
    energy_level: int = Field(5, ge=1, le=10)
    brain_dump: str = ""
    top_outcomes: List[str] = Field(default_factory=lambda: [""] * MAX_TOP_OUTCOMES)
    done_enough: str = ""


class IntakeUpdate(CamelModel):
    """Partial update of the scalar intake fields."""

    deadline: Optional[date] = None
    deadline_time: Optional[time] = None
    min_sleep_hours: Optional[float] = Field(default=None, ge=3, le=10)
    focus_method: Optional[FocusMethod] = None
    energy_level: Optional[int] = Field(default=None, ge=1, le=10)
    brain_dump: Optional[str] = None
    top_outcomes: Optional[List[str]] = Field(default=None, max_length=MAX_TOP_OUTCOMES)
    done_enough: Optional[str] = None

    @field_validator("min_sleep_hours")
    @classmethod
    def _half_hour_steps(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and not float(value * 2).is_integer():
            raise ValueError("min_sleep_hours must be a multiple of 0.5")
        return value


class WorkingWindowPayload(CamelModel):
    date: Optional[dt.date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None


class FixedCommitmentPayload(CamelModel):
    label: Optional[str] = None
    date: Optional[dt.date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

"""Advisory checks of a generated plan against its constraints.

Nothing here rejects a plan. Findings are attached to the session snapshot so
a caller can show that the generator's output looks off.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from clutchmode.api.schemas.constraints import ConstraintModel
from clutchmode.api.schemas.plan import PlanModel, ScheduleBlock

MAX_PRIORITIES = 3
STARTER_WINDOW_MINUTES = 60


@dataclass
class PlanReview:
    reversed_blocks: List[str] = field(default_factory=list)
    out_of_range_blocks: List[str] = field(default_factory=list)
    commitment_conflicts: List[str] = field(default_factory=list)
    order_issues: List[str] = field(default_factory=list)
    overload_warnings: List[str] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return [
            *self.reversed_blocks,
            *self.out_of_range_blocks,
            *self.commitment_conflicts,
            *self.order_issues,
            *self.overload_warnings,
        ]

    @property
    def clean(self) -> bool:
        return not self.warnings

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reversed_blocks": self.reversed_blocks,
            "out_of_range_blocks": self.out_of_range_blocks,
            "commitment_conflicts": self.commitment_conflicts,
            "order_issues": self.order_issues,
            "overload_warnings": self.overload_warnings,
            "clean": self.clean,
        }


def review_plan(plan: PlanModel, constraints: ConstraintModel, now: datetime) -> PlanReview:
    review = PlanReview()
    deadline = constraints.deadline_at
    previous: Optional[ScheduleBlock] = None

    for block in plan.schedule_blocks:
        start, end = _naive(block.start_time), _naive(block.end_time)
        if end <= start:
            review.reversed_blocks.append(f"'{block.label}' ends before it starts.")
        if start < _naive(now) or end > deadline:
            review.out_of_range_blocks.append(f"'{block.label}' falls outside now..deadline.")
        if block.type == "work":
            for commitment in constraints.fixed_commitments:
                busy_start = datetime.combine(commitment.date, commitment.start_time)
                busy_end = datetime.combine(commitment.date, commitment.end_time)
                if start < busy_end and busy_start < end:
                    label = commitment.label or "a fixed commitment"
                    review.commitment_conflicts.append(f"'{block.label}' overlaps {label}.")
        if previous is not None and start < _naive(previous.start_time):
            review.order_issues.append(f"'{block.label}' starts before '{previous.label}'.")
        previous = block

    if len(plan.top_priorities) > MAX_PRIORITIES:
        review.overload_warnings.append(f"{len(plan.top_priorities)} priorities (max {MAX_PRIORITIES}).")
    starter_minutes = sum(step.minutes for step in plan.next_60_minutes)
    if starter_minutes > STARTER_WINDOW_MINUTES:
        review.overload_warnings.append(f"First-hour checklist adds up to {starter_minutes} minutes.")
    return review


def _naive(value: datetime) -> datetime:
    # Constraints are wall-clock times; compare blocks as written.
    return value.replace(tzinfo=None)

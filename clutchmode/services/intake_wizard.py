"""Five-step intake wizard that collects a complete ConstraintModel."""
from __future__ import annotations

import logging
from datetime import datetime
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional

from clutchmode.api.schemas.constraints import (
    MAX_TOP_OUTCOMES,
    ConstraintModel,
    FixedCommitment,
    IntakeDraft,
    WorkingWindow,
)
from clutchmode.core.errors import IntakeValidationError

logger = logging.getLogger(__name__)


class IntakeStep(IntEnum):
    DEADLINE = 0
    AVAILABILITY = 1
    PREFERENCES = 2
    BRAIN_DUMP = 3
    PRIORITIES = 4


STEP_LABELS = {
    IntakeStep.DEADLINE: "Deadline",
    IntakeStep.AVAILABILITY: "Availability",
    IntakeStep.PREFERENCES: "Preferences",
    IntakeStep.BRAIN_DUMP: "Brain Dump",
    IntakeStep.PRIORITIES: "Priorities",
}

STEP_REQUIREMENTS = {
    IntakeStep.DEADLINE: "Pick a deadline date.",
    IntakeStep.AVAILABILITY: "Add at least one working window.",
    IntakeStep.PREFERENCES: "",
    IntakeStep.BRAIN_DUMP: "Write down everything on your mind.",
    IntakeStep.PRIORITIES: "Name at least one outcome and what 'done enough' means.",
}


class IntakeWizard:
    """Linear, revisitable state machine over the intake steps.

    Moving forward requires the current step's completeness check; moving back
    or jumping to an earlier step never clears data. The wizard only mutates
    its in-memory draft and never talks to the generator.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock
        self.step = IntakeStep.DEADLINE
        self.generating = False
        self.draft = IntakeDraft(working_windows=[WorkingWindow(date=clock().date())])

    # -- draft editing -------------------------------------------------

    def update(self, **fields: Any) -> None:
        for name, value in fields.items():
            if value is None:
                continue
            if name == "top_outcomes":
                self._set_outcomes(value)
            else:
                setattr(self.draft, name, value)

    def set_outcome(self, index: int, text: str) -> None:
        if not 0 <= index < MAX_TOP_OUTCOMES:
            raise IndexError(f"Outcome index must be between 0 and {MAX_TOP_OUTCOMES - 1}")
        outcomes = list(self.draft.top_outcomes)
        outcomes[index] = text
        self.draft.top_outcomes = outcomes

    def _set_outcomes(self, values: List[str]) -> None:
        padded = list(values)[:MAX_TOP_OUTCOMES]
        padded += [""] * (MAX_TOP_OUTCOMES - len(padded))
        self.draft.top_outcomes = padded

    def add_working_window(self, **fields: Any) -> WorkingWindow:
        values = {key: value for key, value in fields.items() if value is not None}
        values.setdefault("date", self.clock().date())
        window = WorkingWindow(**values)
        self.draft.working_windows = [*self.draft.working_windows, window]
        return window

    def update_working_window(self, window_id: str, **fields: Any) -> WorkingWindow:
        windows = self.draft.working_windows
        index = _index_of(windows, window_id)
        updated = windows[index].model_copy(update=_present(fields))
        self.draft.working_windows = [*windows[:index], updated, *windows[index + 1 :]]
        return updated

    def remove_working_window(self, window_id: str) -> None:
        windows = self.draft.working_windows
        index = _index_of(windows, window_id)
        self.draft.working_windows = [*windows[:index], *windows[index + 1 :]]

    def add_commitment(self, **fields: Any) -> FixedCommitment:
        values = {key: value for key, value in fields.items() if value is not None}
        values.setdefault("date", self.clock().date())
        commitment = FixedCommitment(**values)
        self.draft.fixed_commitments = [*self.draft.fixed_commitments, commitment]
        return commitment

    def update_commitment(self, commitment_id: str, **fields: Any) -> FixedCommitment:
        commitments = self.draft.fixed_commitments
        index = _index_of(commitments, commitment_id)
        updated = commitments[index].model_copy(update=_present(fields))
        self.draft.fixed_commitments = [*commitments[:index], updated, *commitments[index + 1 :]]
        return updated

    def remove_commitment(self, commitment_id: str) -> None:
        commitments = self.draft.fixed_commitments
        index = _index_of(commitments, commitment_id)
        self.draft.fixed_commitments = [*commitments[:index], *commitments[index + 1 :]]

    # -- navigation ----------------------------------------------------

    def can_proceed(self, step: Optional[IntakeStep] = None) -> bool:
        step = self.step if step is None else IntakeStep(step)
        draft = self.draft
        if step == IntakeStep.DEADLINE:
            return draft.deadline is not None
        if step == IntakeStep.AVAILABILITY:
            return len(draft.working_windows) > 0
        if step == IntakeStep.PREFERENCES:
            return True
        if step == IntakeStep.BRAIN_DUMP:
            return bool(draft.brain_dump.strip())
        if step == IntakeStep.PRIORITIES:
            return any(outcome.strip() for outcome in draft.top_outcomes) and bool(draft.done_enough.strip())
        return False

    def advance(self) -> IntakeStep:
        if self.step == IntakeStep.PRIORITIES:
            raise IntakeValidationError(self.step, "Already on the last step; submit the intake instead.")
        self._require(self.step)
        self.step = IntakeStep(self.step + 1)
        return self.step

    def back(self) -> IntakeStep:
        if self.step > IntakeStep.DEADLINE:
            self.step = IntakeStep(self.step - 1)
        return self.step

    def jump_to(self, step: int) -> IntakeStep:
        target = IntakeStep(step)
        if target > self.step:
            raise IntakeValidationError(target, "Finish the current step before jumping ahead.")
        self.step = target
        return self.step

    def finish(self, now: Optional[datetime] = None) -> ConstraintModel:
        """Validate everything and emit the finished ConstraintModel."""
        if self.step != IntakeStep.PRIORITIES:
            raise IntakeValidationError(self.step, "Complete every step before submitting.")
        for step in IntakeStep:
            self._require(step)

        draft = self.draft
        now = now or self.clock()
        deadline_at = datetime.combine(draft.deadline, draft.deadline_time)
        if deadline_at <= now:
            raise IntakeValidationError(IntakeStep.DEADLINE, "The deadline must be in the future.")

        constraints = ConstraintModel(
            deadline=draft.deadline,
            deadline_time=draft.deadline_time,
            working_windows=tuple(draft.working_windows),
            fixed_commitments=tuple(draft.fixed_commitments),
            min_sleep_hours=draft.min_sleep_hours,
            focus_method=draft.focus_method,
            energy_level=draft.energy_level,
            brain_dump=draft.brain_dump,
            top_outcomes=tuple(outcome for outcome in draft.top_outcomes if outcome.strip()),
            done_enough=draft.done_enough,
        )
        self.generating = True
        logger.info("Intake finished; deadline %s with %d working windows", deadline_at, len(constraints.working_windows))
        return constraints

    def _require(self, step: IntakeStep) -> None:
        if not self.can_proceed(step):
            raise IntakeValidationError(step, STEP_REQUIREMENTS[step])


def _index_of(entries, entry_id: str) -> int:
    for index, entry in enumerate(entries):
        if entry.id == entry_id:
            return index
    raise KeyError(entry_id)


def _present(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}

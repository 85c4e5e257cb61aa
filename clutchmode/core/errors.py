"""Domain exceptions raised by the planning services.

Routes translate these into HTTP responses; nothing here is fatal to the
process. Generator failures, busy rejections and stale responses are reported
as controller outcomes rather than raised (see ``replan_controller``).
"""
from __future__ import annotations


class ClutchError(Exception):
    """Base class for Clutch Mode domain errors."""


class IntakeValidationError(ClutchError):
    """An intake step is incomplete, so the wizard refuses to move on."""

    def __init__(self, step: int, message: str):
        super().__init__(message)
        self.step = step
        self.message = message


class PlanStateError(ClutchError):
    """The requested operation does not fit the session's current state."""


class SessionNotFoundError(ClutchError):
    """No live planning session exists for the given id."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id

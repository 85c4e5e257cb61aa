"""In-memory registry of planning sessions."""
from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from threading import Lock
from typing import Callable, Tuple
from uuid import uuid4

from clutchmode.core.config import settings
from clutchmode.core.errors import SessionNotFoundError
from clutchmode.services.generator.base import PlanGenerator
from clutchmode.services.intake_wizard import IntakeWizard
from clutchmode.services.replan_controller import ControllerSnapshot, ReplanController

logger = logging.getLogger(__name__)


@dataclass
class ClutchSession:
    id: str
    wizard: IntakeWizard
    controller: ReplanController
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def snapshot(self) -> Tuple[ControllerSnapshot, IntakeWizard]:
        """Controller state paired with the wizard that belongs to it."""
        with self.lock:
            return self.controller.snapshot(), self.wizard

    def reset(self) -> None:
        """Discard plan, constraints, conversation and the intake draft together."""
        with self.lock:
            self.controller.reset()
            self.wizard = IntakeWizard(clock=self.wizard.clock)


class SessionStore:
    """Holds live sessions for the lifetime of the process.

    Sessions are never written anywhere; the oldest one is dropped once
    ``limit`` is exceeded.
    """

    def __init__(self, limit: int | None = None, clock: Callable[[], datetime] = datetime.now):
        self.limit = limit or settings.session_limit
        self._clock = clock
        self._sessions: "OrderedDict[str, ClutchSession]" = OrderedDict()
        self._lock = Lock()

    def create(self, generator: PlanGenerator) -> ClutchSession:
        session = ClutchSession(
            id=uuid4().hex,
            wizard=IntakeWizard(clock=self._clock),
            controller=ReplanController(generator),
        )
        with self._lock:
            self._sessions[session.id] = session
            while len(self._sessions) > self.limit:
                evicted_id, _ = self._sessions.popitem(last=False)
                logger.info("Evicted planning session %s (limit %d)", evicted_id, self.limit)
        return session

    def get(self, session_id: str) -> ClutchSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            self._sessions.move_to_end(session_id)
            return session

    def discard(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)

    def __len__(self) -> int:
        return len(self._sessions)


@lru_cache
def get_session_store() -> SessionStore:
    return SessionStore()

from __future__ import annotations

import threading
from datetime import date, time, timedelta
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from clutchmode.api.schemas.constraints import ConstraintModel, WorkingWindow
from clutchmode.api.schemas.plan import PlanModel
from clutchmode.main import app
from clutchmode.services.generator.base import GenerationRequest, GenerationSuccess, PlanGenerator
from clutchmode.services.generator.factory import get_plan_generator
from clutchmode.services.session_store import SessionStore, get_session_store


class FakeGenerator(PlanGenerator):
    """Scripted generator: each call pops the next reply (a success or an exception)."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests: List[GenerationRequest] = []
        self.entered = threading.Event()
        self.gate: Optional[threading.Event] = None

    def queue(self, *replies) -> None:
        self.replies.extend(replies)

    def hold(self) -> threading.Event:
        """Block the next calls until the returned event is set."""
        self.gate = threading.Event()
        return self.gate

    def _generate(self, request: GenerationRequest) -> GenerationSuccess:
        self.requests.append(request)
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def tomorrow() -> date:
    return date.today() + timedelta(days=1)


def make_constraints(**overrides) -> ConstraintModel:
    values = {
        "deadline": tomorrow(),
        "deadline_time": time(23, 59),
        "working_windows": [WorkingWindow(date=date.today(), start_time=time(18, 0), end_time=time(22, 0))],
        "brain_dump": "finish essay, email professor",
        "top_outcomes": ["submit essay draft"],
        "done_enough": "intro written",
    }
    values.update(overrides)
    return ConstraintModel(**values)


def block(start: str, end: str, label: str = "Focus", type_: str = "work") -> dict:
    return {"startTime": start, "endTime": end, "label": label, "type": type_}


def make_plan(blocks: Optional[list] = None, summary: str = "Start small and keep moving.") -> PlanModel:
    day = tomorrow().isoformat()
    if blocks is None:
        blocks = [
            block(f"{day}T09:00:00", f"{day}T09:10:00", "Set up desk", "admin"),
            block(f"{day}T09:10:00", f"{day}T09:35:00", "Draft intro"),
            block(f"{day}T09:35:00", f"{day}T09:40:00", "Stretch", "break"),
        ]
    return PlanModel.model_validate(
        {
            "summary": summary,
            "topPriorities": [{"task": "Essay draft", "reason": "Due tomorrow", "estimatedMinutes": 90}],
            "scheduleBlocks": blocks,
            "next60Minutes": [{"step": "Open the doc", "minutes": 5}, {"step": "Write the thesis", "minutes": 20}],
            "twoMinuteStart": "Open the essay file and type the title.",
            "ifBehindPlan": ["Cut the conclusion to two sentences."],
            "notes": ["Drink water."],
        }
    )


def success(plan: Optional[PlanModel] = None, message: Optional[str] = None) -> GenerationSuccess:
    return GenerationSuccess(plan=plan, message=message)


@pytest.fixture()
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture()
def client(generator):
    store = SessionStore(limit=50)
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_plan_generator] = lambda: generator
    with TestClient(app) as test_client:
        yield test_client, generator
    app.dependency_overrides.clear()


def fill_intake(test_client: TestClient, session_id: str) -> None:
    """Walk a session through every intake step up to Priorities."""
    base = f"/sessions/{session_id}/intake"
    assert test_client.patch(base, json={"deadline": tomorrow().isoformat()}).status_code == 200
    assert test_client.post(f"{base}/next").status_code == 200
    assert test_client.post(f"{base}/next").status_code == 200
    assert test_client.post(f"{base}/next").status_code == 200
    assert test_client.patch(base, json={"brainDump": "finish essay, email professor"}).status_code == 200
    assert test_client.post(f"{base}/next").status_code == 200
    response = test_client.patch(base, json={"topOutcomes": ["submit essay draft"], "doneEnough": "intro written"})
    assert response.status_code == 200
from __future__ import annotations

import threading
from datetime import date, timedelta

import pytest
from conftest import FakeGenerator, block, make_constraints, make_plan, success

from clutchmode.api.schemas.plan import ReplanDelta
from clutchmode.core.errors import PlanStateError
from clutchmode.services.conversation_log import GREETING
from clutchmode.services.generator.base import ChatRequest, InitialRequest, PlanGenerator, ReplanRequest
from clutchmode.services.replan_controller import Outcome, PlanState, ReplanController

DAY = (date.today() + timedelta(days=1)).isoformat()


def _controller_with_plan(generator: FakeGenerator, plan=None) -> ReplanController:
    plan = plan or make_plan()
    generator.queue(success(plan))
    controller = ReplanController(generator)
    result = controller.generate_initial(make_constraints())
    assert result.outcome == Outcome.UPDATED
    return controller


def test_initial_generation_stores_plan_and_greets() -> None:
    generator = FakeGenerator()
    plan = make_plan()
    controller = _controller_with_plan(generator, plan)

    assert controller.state == PlanState.HAS_PLAN
    assert controller.plan is plan
    assert isinstance(generator.requests[0], InitialRequest)
    assert [message.content for message in controller.messages] == [GREETING]


def test_initial_failure_keeps_constraints_for_retry() -> None:
    generator = FakeGenerator(RuntimeError("upstream timeout"))
    controller = ReplanController(generator)
    constraints = make_constraints()

    result = controller.generate_initial(constraints)

    assert result.outcome == Outcome.FAILED
    assert result.reason == "upstream timeout"
    assert controller.state == PlanState.NO_PLAN
    assert controller.plan is None
    assert controller.constraints is constraints
    assert controller.snapshot().last_error == "upstream timeout"

    generator.queue(success(make_plan()))
    retried = controller.retry_initial()
    assert retried.outcome == Outcome.UPDATED
    assert generator.requests[1].constraints is constraints
    assert controller.snapshot().last_error is None


def test_initial_generation_rejected_once_plan_exists() -> None:
    controller = _controller_with_plan(FakeGenerator())

    with pytest.raises(PlanStateError):
        controller.generate_initial(make_constraints())


def test_initial_success_without_plan_is_a_failure() -> None:
    controller = ReplanController(FakeGenerator(success(None)))

    result = controller.generate_initial(make_constraints())

    assert result.outcome == Outcome.FAILED
    assert "no plan" in result.reason
    assert controller.state == PlanState.NO_PLAN


def test_status_update_replaces_plan_wholesale() -> None:
    generator = FakeGenerator()
    old_plan = make_plan([block(f"{DAY}T09:00:00", f"{DAY}T10:00:00", "Draft intro")])
    controller = _controller_with_plan(generator, old_plan)
    new_plan = make_plan(
        [
            block(f"{DAY}T13:00:00", f"{DAY}T13:50:00", "Write body"),
            block(f"{DAY}T13:50:00", f"{DAY}T14:00:00", "Walk", "break"),
        ],
        summary="Intro is done; body next.",
    )
    generator.queue(success(new_plan))
    delta = ReplanDelta(completed_tasks="intro done", remaining_time="2 hours", current_energy=7)

    result = controller.submit_status_update(delta)

    assert result.outcome == Outcome.UPDATED
    assert controller.plan is new_plan
    assert [entry.label for entry in controller.plan.schedule_blocks] == ["Write body", "Walk"]
    request = generator.requests[-1]
    assert isinstance(request, ReplanRequest)
    assert request.current_plan is old_plan
    assert request.delta == delta


def test_failed_status_update_leaves_plan_identical() -> None:
    generator = FakeGenerator()
    controller = _controller_with_plan(generator)
    before = controller.plan
    before_json = before.model_dump_json()
    generator.queue(ValueError("bad JSON"))

    result = controller.submit_status_update(ReplanDelta(current_energy=2))

    assert result.outcome == Outcome.FAILED
    assert controller.plan is before
    assert controller.plan.model_dump_json() == before_json
    assert controller.state == PlanState.HAS_PLAN


def test_status_update_without_plan_is_rejected() -> None:
    controller = ReplanController(FakeGenerator())

    with pytest.raises(PlanStateError):
        controller.submit_status_update(ReplanDelta())


def test_chat_reply_without_plan_keeps_schedule() -> None:
    generator = FakeGenerator()
    controller = _controller_with_plan(generator)
    before = controller.plan
    generator.queue(success(message="Done."))

    result = controller.submit_chat_message("move my study block later")

    assert result.outcome == Outcome.UNCHANGED
    assert controller.plan is before
    contents = [(message.role, message.content) for message in controller.messages]
    assert contents[-2:] == [("user", "move my study block later"), ("assistant", "Done.")]
    assert result.message.updated_plan is None


def test_chat_reply_with_plan_replaces_schedule() -> None:
    generator = FakeGenerator()
    controller = _controller_with_plan(generator)
    updated = make_plan(summary="Study block moved to the evening.")
    generator.queue(success(updated, "Moved it."))

    result = controller.submit_chat_message("move my study block later")

    assert result.outcome == Outcome.UPDATED
    assert controller.plan is updated
    assert controller.messages[-1].updated_plan == updated
    request = generator.requests[-1]
    assert isinstance(request, ChatRequest)
    assert [turn.role for turn in request.conversation] == ["assistant", "user"]


def test_chat_failure_keeps_user_message_only() -> None:
    generator = FakeGenerator()
    controller = _controller_with_plan(generator)
    before = controller.plan
    generator.queue(RuntimeError("service unavailable"))

    result = controller.submit_chat_message("I lost an hour")

    assert result.outcome == Outcome.FAILED
    assert controller.plan is before
    assert [message.role for message in controller.messages] == ["assistant", "user"]
    assert controller.messages[-1].content == "I lost an hour"


def test_empty_chat_reply_falls_back_to_acknowledgement() -> None:
    generator = FakeGenerator()
    controller = _controller_with_plan(generator)
    generator.queue(success(message=""))

    controller.submit_chat_message("thanks")

    assert controller.messages[-1].content == "Got it."


def test_blank_chat_message_is_rejected() -> None:
    controller = _controller_with_plan(FakeGenerator())

    with pytest.raises(PlanStateError):
        controller.submit_chat_message("   ")


def test_second_request_while_in_flight_is_busy() -> None:
    generator = FakeGenerator()
    controller = _controller_with_plan(generator)
    first_plan = make_plan(summary="first replan")
    generator.queue(success(first_plan))
    gate = generator.hold()
    generator.entered.clear()
    results = []

    worker = threading.Thread(target=lambda: results.append(controller.submit_status_update(ReplanDelta())))
    worker.start()
    assert generator.entered.wait(timeout=5)

    busy = controller.submit_chat_message("hello?")
    assert busy.outcome == Outcome.BUSY
    assert controller.busy is True
    assert controller.state == PlanState.REPLANNING

    gate.set()
    worker.join(timeout=5)

    assert results[0].outcome == Outcome.UPDATED
    assert controller.plan is first_plan
    assert len(generator.requests) == 2
    assert [message.content for message in controller.messages] == [GREETING]


def test_reset_clears_everything_together() -> None:
    generator = FakeGenerator()
    controller = _controller_with_plan(generator)
    generator.queue(success(message="Sure."))
    controller.submit_chat_message("add a break")

    controller.reset()

    snapshot = controller.snapshot()
    assert snapshot.state == PlanState.NO_PLAN
    assert snapshot.plan is None
    assert snapshot.constraints is None
    assert snapshot.messages == ()
    assert snapshot.last_error is None


def test_response_arriving_after_reset_is_discarded() -> None:
    generator = FakeGenerator()
    controller = _controller_with_plan(generator)
    generator.queue(success(make_plan(summary="late")))
    gate = generator.hold()
    generator.entered.clear()
    results = []

    worker = threading.Thread(target=lambda: results.append(controller.submit_status_update(ReplanDelta())))
    worker.start()
    assert generator.entered.wait(timeout=5)
    controller.reset()
    gate.set()
    worker.join(timeout=5)

    assert results[0].outcome == Outcome.STALE
    assert controller.plan is None
    assert controller.state == PlanState.NO_PLAN
    assert controller.messages == ()


class _RaisingGenerator(PlanGenerator):
    """Provider that skips the base error handling and raises straight out of ``generate``."""

    def __init__(self, plan):
        self.plan = plan
        self.calls = 0

    def generate(self, request):
        self.calls += 1
        if self.calls == 2:
            raise RuntimeError("solver crashed")
        return success(self.plan)


def test_raising_generator_is_a_failure_and_frees_the_controller() -> None:
    plan = make_plan()
    generator = _RaisingGenerator(plan)
    controller = ReplanController(generator)
    controller.generate_initial(make_constraints())

    failed = controller.submit_status_update(ReplanDelta(current_energy=4))

    assert failed.outcome == Outcome.FAILED
    assert failed.reason == "solver crashed"
    assert controller.busy is False
    assert controller.state == PlanState.HAS_PLAN
    assert controller.plan is plan

    generator.plan = make_plan(summary="back on track")
    follow_up = controller.submit_chat_message("hello")
    assert follow_up.outcome == Outcome.UPDATED
    assert controller.plan.summary == "back on track"

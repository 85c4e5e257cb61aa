from __future__ import annotations

from conftest import block, make_plan

from clutchmode.services.plan_presenter import block_duration_minutes, group_blocks_by_day, present_plan


def _interleaved_plan():
    return make_plan(
        [
            block("2026-10-20T21:00:00", "2026-10-20T21:30:00", "Outline"),
            block("2026-10-21T08:00:00", "2026-10-21T08:50:00", "Draft body"),
            block("2026-10-20T21:30:00", "2026-10-20T21:40:00", "Break", "break"),
            block("2026-10-19T23:00:00", "2026-10-19T23:15:00", "Late admin", "admin"),
            block("2026-10-21T09:00:00", "2026-10-21T09:20:00", "Buffer", "buffer"),
        ]
    )


def test_groups_concatenate_back_to_original_sequence() -> None:
    plan = make_plan(
        [
            block("2026-10-20T21:00:00", "2026-10-20T21:30:00", "Outline"),
            block("2026-10-20T21:30:00", "2026-10-20T21:40:00", "Break", "break"),
            block("2026-10-21T08:00:00", "2026-10-21T08:50:00", "Draft body"),
        ]
    )

    groups = group_blocks_by_day(plan.schedule_blocks)
    flattened = [entry for blocks in groups.values() for entry in blocks]

    assert flattened == list(plan.schedule_blocks)


def test_days_follow_first_appearance_not_calendar_order() -> None:
    groups = group_blocks_by_day(_interleaved_plan().schedule_blocks)

    assert [day.isoformat() for day in groups] == ["2026-10-20", "2026-10-21", "2026-10-19"]
    assert [entry.label for entry in groups[next(iter(groups))]] == ["Outline", "Break"]


def test_grouping_uses_written_date_not_converted_timezone() -> None:
    plan = make_plan([block("2026-10-20T23:30:00-05:00", "2026-10-21T00:10:00-05:00", "Late push")])

    view = present_plan(plan)

    assert [day.date for day in view.days] == ["2026-10-20"]


def test_duration_is_exact_minutes() -> None:
    plan = make_plan([block("2026-10-20T09:00:00", "2026-10-20T10:30:00", "Draft intro")])

    assert block_duration_minutes(plan.schedule_blocks[0]) == 90


def test_reversed_block_duration_is_negative_not_clamped() -> None:
    plan = make_plan(
        [
            block("2026-10-20T10:00:00", "2026-10-20T09:15:00", "Backwards"),
            block("2026-10-20T11:00:00", "2026-10-20T11:00:00", "Empty"),
        ]
    )

    view = present_plan(plan)
    durations = [entry.duration_minutes for entry in view.days[0].blocks]

    assert durations == [-45, 0]


def test_mixed_naive_and_aware_times_do_not_raise() -> None:
    plan = make_plan([block("2026-10-20T09:00:00Z", "2026-10-20T09:25:00", "Mixed")])

    assert block_duration_minutes(plan.schedule_blocks[0]) == 25


def test_view_carries_contingencies_labels_and_totals() -> None:
    view = present_plan(_interleaved_plan())

    assert view.if_behind_plan == ["Cut the conclusion to two sentences."]
    assert view.total_priority_minutes == 90
    first_day = view.days[0]
    assert first_day.label == "Tue, Oct 20"
    assert first_day.blocks[0].time_range == "9:00 PM - 9:30 PM"
    labels = {entry.type: entry.type_label for day in view.days for entry in day.blocks}
    assert labels == {"work": "Work", "break": "Break", "admin": "Setup", "buffer": "Buffer"}


def test_present_does_not_modify_plan() -> None:
    plan = _interleaved_plan()
    before = plan.model_dump_json()

    present_plan(plan)

    assert plan.model_dump_json() == before

"""Pure transformation of a PlanModel into a day-grouped view."""
from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List

from clutchmode.api.schemas.plan import DayGroup, PlanModel, PlanView, PresentedBlock, ScheduleBlock

BLOCK_TYPE_LABELS = {
    "work": "Work",
    "break": "Break",
    "admin": "Setup",
    "buffer": "Buffer",
}


def present_plan(plan: PlanModel) -> PlanView:
    days = [
        DayGroup(
            date=day.isoformat(),
            label=_day_label(day),
            blocks=[_present_block(block) for block in blocks],
        )
        for day, blocks in group_blocks_by_day(plan.schedule_blocks).items()
    ]
    return PlanView(
        summary=plan.summary,
        top_priorities=list(plan.top_priorities),
        total_priority_minutes=sum(priority.estimated_minutes for priority in plan.top_priorities),
        next_60_minutes=list(plan.next_60_minutes),
        two_minute_start=plan.two_minute_start,
        days=days,
        if_behind_plan=list(plan.if_behind_plan),
        notes=list(plan.notes),
    )


def group_blocks_by_day(blocks: List[ScheduleBlock]) -> Dict[date, List[ScheduleBlock]]:
    """Partition blocks by the date written in their start time.

    Days appear in the order of their first block and blocks keep their
    relative order, so concatenating the groups gives back ``blocks``. The date
    is taken as written; no timezone conversion is applied.
    """
    groups: Dict[date, List[ScheduleBlock]] = {}
    for block in blocks:
        groups.setdefault(block.start_time.date(), []).append(block)
    return groups


def block_duration_minutes(block: ScheduleBlock) -> float:
    """Minutes from start to end, unclamped; a reversed block goes negative."""
    start, end = block.start_time, block.end_time
    if (start.tzinfo is None) != (end.tzinfo is None):
        if start.tzinfo is None:
            start = start.replace(tzinfo=end.tzinfo)
        else:
            end = end.replace(tzinfo=start.tzinfo)
    minutes = (end - start).total_seconds() / 60
    return int(minutes) if minutes.is_integer() else minutes


def _present_block(block: ScheduleBlock) -> PresentedBlock:
    return PresentedBlock(
        start_time=block.start_time,
        end_time=block.end_time,
        label=block.label,
        type=block.type,
        type_label=BLOCK_TYPE_LABELS.get(block.type, BLOCK_TYPE_LABELS["work"]),
        time_range=f"{format_block_time(block.start_time)} - {format_block_time(block.end_time)}",
        duration_minutes=block_duration_minutes(block),
    )


def _day_label(day: date) -> str:
    return f"{day:%a, %b} {day.day}"


def format_block_time(value: datetime) -> str:
    return value.strftime("%I:%M %p").lstrip("0")

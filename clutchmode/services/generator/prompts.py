"""Prompt text for the LLM-backed plan generator."""
from __future__ import annotations

import json
from datetime import datetime
from typing import Dict, List

from clutchmode.api.schemas.constraints import ConstraintModel
from clutchmode.api.schemas.plan import ChatTurn, PlanModel, ReplanDelta

PLAN_FORMAT = """{
  "summary": "Calm, reassuring overview of the plan",
  "topPriorities": [
    { "task": "Task name", "reason": "Why it matters now", "estimatedMinutes": 45 }
  ],
  "scheduleBlocks": [
    { "startTime": "ISO datetime", "endTime": "ISO datetime", "label": "Activity label", "type": "work | break | admin | buffer" }
  ],
  "next60Minutes": [
    { "step": "Small concrete action", "minutes": 10 }
  ],
  "twoMinuteStart": "A 2-minute action that lowers resistance and gets started",
  "ifBehindPlan": ["Clear, shame-free instructions for replanning"],
  "notes": ["Supportive, practical reminders"]
}"""

PLAN_SYSTEM_PROMPT = (
    "You are Clutch Mode, a scheduling assistant for people who are starting late, feel overwhelmed, "
    "or have ADHD. Take messy, incomplete inputs and build a realistic, shame-free plan optimized for "
    "momentum and completion, not perfection.\n\n"
    "Rules:\n"
    "- Assume the user is starting late. Never reference past failure.\n"
    "- No guilt, shame, or motivational fluff. Be calm, direct, and supportive.\n"
    "- Limit the plan to a maximum of 3 major priorities.\n"
    "- Break all work into 5-25 minute steps.\n"
    "- Include breaks, 10-20% buffer time, and a short admin/setup block at the start.\n"
    "- Start with the easiest high-impact task to build momentum.\n"
    "- Never schedule work during fixed commitments or outside the working windows.\n"
    "- If there is not enough time, downgrade tasks to their minimum viable version.\n"
    "- All times in the schedule must be valid ISO 8601 datetime strings.\n"
    "- Output ONLY valid JSON with no markdown formatting, no code fences, no extra text.\n\n"
    f"Output format (strict JSON):\n{PLAN_FORMAT}"
)

CHAT_SYSTEM_PROMPT = (
    "You are Clutch Mode, a calm scheduling assistant. The user already has a plan and is telling you "
    "what changed: new tasks, lost time, energy shifts, or requests to move things around. Answer in one "
    "or two short, shame-free sentences. If the schedule should change, rebuild the whole plan from now "
    "using the same rules as before (max 3 priorities, 5-25 minute steps, breaks and buffer, ISO 8601 "
    "times). If nothing needs to change, leave the plan out.\n\n"
    "Output ONLY valid JSON with no markdown formatting:\n"
    '{ "message": "Short reply to the user", "updatedPlan": <full plan object or null> }\n\n'
    f"Plan object format:\n{PLAN_FORMAT}"
)


def constraints_block(constraints: ConstraintModel, now: datetime) -> str:
    wire = constraints.model_dump(mode="json", by_alias=True)
    work, rest = constraints.focus_minutes
    return (
        f"Deadline: {wire['deadline']} at {wire['deadlineTime']}\n"
        f"Current time: {now.isoformat(timespec='minutes')}\n"
        f"Available working windows: {json.dumps(wire['workingWindows'])}\n"
        f"Fixed commitments: {json.dumps(wire['fixedCommitments'])}\n"
        f"Minimum sleep hours: {constraints.min_sleep_hours}\n"
        f"Focus method (work/break): {constraints.focus_method} ({work} min work, {rest} min break)\n"
        f"Energy level: {constraints.energy_level}/10\n"
        f"Brain dump: {constraints.brain_dump}\n"
        f"Top outcomes that must be done: {json.dumps(constraints.top_outcomes)}\n"
        f'"Done enough" means: {constraints.done_enough}'
    )


def initial_user_prompt(constraints: ConstraintModel, now: datetime) -> str:
    return constraints_block(constraints, now)


def replan_user_prompt(constraints: ConstraintModel, plan: PlanModel, delta: ReplanDelta, now: datetime) -> str:
    return (
        "REPLAN REQUEST. Do not reference what was missed. Just build a new plan from now.\n\n"
        f"What was completed: {delta.completed_tasks}\n"
        f"Remaining time available: {delta.remaining_time}\n"
        f"Current energy level: {delta.current_energy}/10\n\n"
        f"Previous plan: {plan.model_dump_json(by_alias=True)}\n\n"
        "Original context:\n"
        f"{constraints_block(constraints, now)}"
    )


def chat_messages(
    constraints: ConstraintModel,
    plan: PlanModel,
    conversation: List[ChatTurn],
    now: datetime,
) -> List[Dict[str, str]]:
    context = (
        "Planning context:\n"
        f"{constraints_block(constraints, now)}\n\n"
        f"Current plan: {plan.model_dump_json(by_alias=True)}"
    )
    messages = [
        {"role": "system", "content": CHAT_SYSTEM_PROMPT},
        {"role": "system", "content": context},
    ]
    messages.extend({"role": turn.role, "content": turn.content} for turn in conversation)
    return messages

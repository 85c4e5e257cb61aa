"""Append-only conversation log for plan adjustments."""
from __future__ import annotations

from typing import Iterator, List, Optional, Tuple
from uuid import uuid4

from clutchmode.api.schemas.plan import ChatTurn, ConversationMessage, PlanModel, Role

GREETING = (
    "Your plan is ready. If anything changes (new task, lost time, energy shift), "
    "just tell me and I will update your schedule."
)
FALLBACK_REPLY = "Got it."


class ConversationLog:
    """Ordered messages with a monotonic sequence counter.

    Entries are never removed individually; ``clear`` is only called as part
    of a full session reset. Not thread-safe on its own: the replan controller
    serializes access.
    """

    def __init__(self) -> None:
        self._messages: List[ConversationMessage] = []
        self._sequence = 0

    def append(self, role: Role, content: str, updated_plan: Optional[PlanModel] = None) -> ConversationMessage:
        self._sequence += 1
        message = ConversationMessage(
            id=uuid4().hex,
            sequence=self._sequence,
            role=role,
            content=content,
            updated_plan=updated_plan,
        )
        self._messages.append(message)
        return message

    def append_user(self, content: str) -> ConversationMessage:
        return self.append("user", content)

    def append_assistant(self, content: Optional[str], updated_plan: Optional[PlanModel] = None) -> ConversationMessage:
        return self.append("assistant", content or FALLBACK_REPLY, updated_plan)

    def as_chat_turns(self) -> List[ChatTurn]:
        return [ChatTurn(role=message.role, content=message.content) for message in self._messages]

    @property
    def messages(self) -> Tuple[ConversationMessage, ...]:
        return tuple(self._messages)

    def clear(self) -> None:
        self._messages = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ConversationMessage]:
        return iter(tuple(self._messages))

"""LLM-backed plan generator using OpenAI chat completions."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional

import openai

from clutchmode.core.config import settings
from clutchmode.observability.tracing import trace
from clutchmode.services.generator.base import (
    ChatRequest,
    GenerationRequest,
    GenerationSuccess,
    InitialRequest,
    PlanGenerator,
    ReplanRequest,
)
from clutchmode.services.generator.parsing import (
    END_OF_STREAM,
    assemble_stream,
    extract_json_object,
    parse_generator_response,
)
from clutchmode.services.generator.prompts import (
    PLAN_SYSTEM_PROMPT,
    chat_messages,
    initial_user_prompt,
    replan_user_prompt,
)

logger = logging.getLogger(__name__)


class OpenAIPlanGenerator(PlanGenerator):
    """Synthesizes plans with a single chat completion per request."""

    def __init__(
        self,
        client: Any = None,
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        stream: Optional[bool] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._client = client
        self.model = model or settings.openai_model
        self.temperature = settings.openai_temperature if temperature is None else temperature
        self.max_tokens = max_tokens or settings.openai_max_tokens
        self.stream = settings.generator_streaming if stream is None else stream
        self._clock = clock

    def _get_client(self):
        if self._client is None:
            if not settings.openai_api_key:
                raise RuntimeError("OPENAI_API_KEY missing; cannot reach the plan generator")
            self._client = openai.OpenAI(api_key=settings.openai_api_key)
        return self._client

    def _generate(self, request: GenerationRequest) -> GenerationSuccess:
        messages = self.build_messages(request)
        metadata = {"mode": request.mode, "model": self.model, "stream": self.stream}
        with trace("generator.openai", metadata=metadata):
            raw = self._complete(messages)

        payload = extract_json_object(raw)
        if not isinstance(request, ChatRequest) and "plan" not in payload:
            payload = {"plan": payload}
        return parse_generator_response(request.mode, payload)

    def build_messages(self, request: GenerationRequest) -> List[Dict[str, str]]:
        now = self._clock()
        if isinstance(request, ChatRequest):
            return chat_messages(request.constraints, request.current_plan, request.conversation, now)
        if isinstance(request, ReplanRequest):
            user_prompt = replan_user_prompt(request.constraints, request.current_plan, request.delta, now)
        elif isinstance(request, InitialRequest):
            user_prompt = initial_user_prompt(request.constraints, now)
        else:
            raise TypeError(f"Unsupported generation request: {type(request).__name__}")
        return [
            {"role": "system", "content": PLAN_SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ]

    def _complete(self, messages: List[Dict[str, str]]) -> str:
        client = self._get_client()
        completion = client.chat.completions.create(
            model=self.model,
            response_format={"type": "json_object"},
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            messages=messages,
            stream=self.stream,
        )
        if self.stream:
            return assemble_stream(_stream_text(completion))
        return completion.choices[0].message.content or ""


def _stream_text(stream) -> Iterator[str]:
    """Yield content deltas, then the end marker once the model finishes."""
    for chunk in stream:
        if not chunk.choices:
            continue
        choice = chunk.choices[0]
        content = getattr(choice.delta, "content", None)
        if content:
            yield content
        if choice.finish_reason:
            yield END_OF_STREAM
            return

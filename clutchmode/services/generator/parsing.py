"""Decoding of generator replies: JSON extraction, streams and wire payloads."""
from __future__ import annotations

import codecs
import json
import re
from typing import Any, Dict, Iterable, List, Union

from clutchmode.api.schemas.plan import PlanModel
from clutchmode.services.generator.base import GenerationSuccess

END_OF_STREAM = "[DONE]"

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def extract_json_object(raw: str) -> Dict[str, Any]:
    """Pull the JSON object out of a model reply that may carry fences or prose."""
    candidate = raw.strip()
    fenced = _FENCE_RE.search(candidate)
    if fenced:
        candidate = fenced.group(1).strip()
    else:
        start = candidate.find("{")
        end = candidate.rfind("}")
        if start != -1 and end > start:
            candidate = candidate[start : end + 1]

    payload = json.loads(candidate)
    if not isinstance(payload, dict):
        raise ValueError("Generator reply is not a JSON object")
    return payload


def assemble_stream(chunks: Iterable[Union[str, bytes]], end_marker: str = END_OF_STREAM) -> str:
    """Concatenate streamed text chunks up to the end-of-stream marker.

    The marker ends the stream only as a chunk of its own, so content that
    merely contains it is kept. A raw body whose last chunk carries the marker
    glued to the payload is accepted once the stream is exhausted. Byte chunks
    are decoded incrementally, so a multi-byte character split across chunks
    is handled. A stream that stops before the marker arrives is treated as
    truncated.
    """
    decoder = codecs.getincrementaldecoder("utf-8")()
    parts: List[str] = []
    for chunk in chunks:
        text = decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        if not text:
            continue
        if text.strip() == end_marker:
            return "".join(parts)
        parts.append(text)

    parts.append(decoder.decode(b"", final=True))
    trimmed = "".join(parts).rstrip()
    if trimmed.endswith(end_marker):
        return trimmed[: -len(end_marker)]
    raise ValueError("Generator stream ended without an end-of-stream marker")


def parse_generator_response(mode: str, payload: Dict[str, Any]) -> GenerationSuccess:
    """Map a wire response onto a success value.

    ``{plan}`` is expected for initial and replan requests, ``{message,
    updatedPlan?}`` for chat. A missing plan is returned as ``plan=None`` and
    rejected by ``PlanGenerator.generate`` for non-chat modes.
    """
    if mode == "chat":
        message = payload.get("message")
        if message is not None and not isinstance(message, str):
            raise ValueError("Chat reply message must be a string")
        raw_plan = payload.get("updatedPlan")
        plan = PlanModel.model_validate(raw_plan) if raw_plan else None
        return GenerationSuccess(plan=plan, message=message)

    raw_plan = payload.get("plan")
    plan = PlanModel.model_validate(raw_plan) if raw_plan else None
    return GenerationSuccess(plan=plan)

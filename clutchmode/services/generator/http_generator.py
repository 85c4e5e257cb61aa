"""Plan generator reached over HTTP using the JSON wire contract."""
from __future__ import annotations

import json
import logging
from typing import Optional

import httpx

from clutchmode.core.config import settings
from clutchmode.observability.tracing import trace
from clutchmode.services.generator.base import GenerationRequest, GenerationSuccess, PlanGenerator
from clutchmode.services.generator.parsing import assemble_stream, parse_generator_response

logger = logging.getLogger(__name__)


class HttpPlanGenerator(PlanGenerator):
    """POSTs ``{mode, constraints, plan?, delta?, conversation?}`` to a remote service.

    One request per call: no retries, no caching and no idempotency key.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        stream: Optional[bool] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url or settings.generator_url
        self.timeout = timeout or settings.generator_timeout_seconds
        self.stream = settings.generator_streaming if stream is None else stream
        self._transport = transport

    def _generate(self, request: GenerationRequest) -> GenerationSuccess:
        if not self.url:
            raise RuntimeError("GENERATOR_URL is not configured")

        body = request.to_payload()
        with trace("generator.http", metadata={"mode": request.mode, "stream": self.stream}):
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                if self.stream:
                    with client.stream("POST", self.url, json=body) as response:
                        response.raise_for_status()
                        payload = json.loads(assemble_stream(response.iter_bytes()))
                else:
                    response = client.post(self.url, json=body)
                    response.raise_for_status()
                    payload = response.json()

        if not isinstance(payload, dict):
            raise ValueError("Generator response is not a JSON object")
        return parse_generator_response(request.mode, payload)

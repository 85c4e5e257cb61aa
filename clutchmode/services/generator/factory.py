"""Plan generator factory."""
from __future__ import annotations

from functools import lru_cache

from clutchmode.core.config import settings
from clutchmode.services.generator.base import PlanGenerator
from clutchmode.services.generator.http_generator import HttpPlanGenerator
from clutchmode.services.generator.openai_generator import OpenAIPlanGenerator


@lru_cache
def get_plan_generator() -> PlanGenerator:
    provider = settings.generator_provider.lower()
    if provider == "http":
        return HttpPlanGenerator()
    return OpenAIPlanGenerator()


@lru_cache
def get_llm_generator() -> OpenAIPlanGenerator:
    """Generator backing the public ``/clutch-mode/generate`` endpoint."""
    return OpenAIPlanGenerator()

"""Generator endpoint speaking the plan generator wire contract."""
from __future__ import annotations

from time import perf_counter

from fastapi import APIRouter, Depends, HTTPException, Request, status

from clutchmode.api.deps import request_id_of
from clutchmode.api.schemas.session import GenerateRequestPayload, GenerateResponsePayload
from clutchmode.observability.metrics import log_metric
from clutchmode.observability.tracing import trace
from clutchmode.services.generator.base import GenerationFailure, PlanGenerator
from clutchmode.services.generator.factory import get_llm_generator

router = APIRouter()


@router.post(
    "/clutch-mode/generate",
    response_model=GenerateResponsePayload,
    response_model_exclude_none=True,
    tags=["generator"],
)
def generate(
    payload: GenerateRequestPayload,
    request: Request,
    generator: PlanGenerator = Depends(get_llm_generator),
) -> GenerateResponsePayload:
    """Return ``{plan}`` for initial/replan requests or ``{message, updatedPlan?}`` for chat."""
    request_id = request_id_of(request)
    start = perf_counter()
    with trace("generator.endpoint", metadata={"mode": payload.mode}, request_id=request_id):
        outcome = generator.generate(payload.to_request())

    log_metric("generator.endpoint.latency_ms", (perf_counter() - start) * 1000, metadata={"mode": payload.mode})
    if isinstance(outcome, GenerationFailure):
        log_metric("generator.endpoint.success", 0, metadata={"mode": payload.mode})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=outcome.reason or "Failed to generate plan")

    log_metric("generator.endpoint.success", 1, metadata={"mode": payload.mode})
    if payload.mode == "chat":
        return GenerateResponsePayload(message=outcome.message, updated_plan=outcome.plan)
    return GenerateResponsePayload(plan=outcome.plan)

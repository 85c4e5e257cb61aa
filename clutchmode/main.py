"""Main FastAPI application for the Clutch Mode backend."""
from fastapi import FastAPI, Request

from clutchmode.api.routes.generator import router as generator_router
from clutchmode.api.routes.intake import router as intake_router
from clutchmode.api.routes.plan import router as plan_router
from clutchmode.api.routes.sessions import router as sessions_router
from clutchmode.core.config import settings
from clutchmode.core.logging import configure_logging
from clutchmode.core.middleware import RequestIDMiddleware
from clutchmode.observability.client import init_opik
from clutchmode.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(sessions_router)
app.include_router(intake_router)
app.include_router(plan_router)
app.include_router(generator_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}

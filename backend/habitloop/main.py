"""Main FastAPI application for the HabitLoop backend."""
from fastapi import FastAPI, Request

from habitloop.api.routes.agendas import router as agendas_router
from habitloop.api.routes.insights import router as insights_router
from habitloop.api.routes.jobs import router as jobs_router
from habitloop.api.routes.sync import router as sync_router
from habitloop.api.routes.tasks import router as tasks_router
from habitloop.core.config import settings
from habitloop.core.logging import configure_logging
from habitloop.core.middleware import RequestIDMiddleware
from habitloop.observability.client import init_opik
from habitloop.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(agendas_router)
app.include_router(tasks_router)
app.include_router(insights_router)
app.include_router(sync_router)
app.include_router(jobs_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}

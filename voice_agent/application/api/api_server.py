from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import os
import time
import uuid
import structlog

from voice_agent.domain.orchestration.core.turn_coordinator import TurnCoordinator
from voice_agent.infrastructure.observability.logging import metrics, setup_logging
from .route.turn import router as turn_router

logger = structlog.get_logger(__name__)


def create_app(coordinator: TurnCoordinator, configure_logging: bool = True) -> FastAPI:
    """Build the HTTP surface around a turn coordinator"""

    if configure_logging:
        setup_logging(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json")
        )

    app = FastAPI(title="Voice Agent Turn Server")
    app.state.coordinator = coordinator

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start = time.monotonic()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)
            duration_ms = (time.monotonic() - start) * 1000
            metrics.record_latency("http_request", duration_ms, tags={"path": request.url.path})
            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1)
            )

        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(turn_router)
    return app


def serve(coordinator: TurnCoordinator, host: str = "0.0.0.0", port: int = 8000):
    """Run the turn server with uvicorn"""

    import uvicorn
    uvicorn.run(create_app(coordinator), host=host, port=port)

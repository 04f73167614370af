from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import structlog

from voice_agent.domain.models.errors import ModelCallError
from voice_agent.domain.models.turn_state import ChatMessage, TurnResult
from voice_agent.domain.orchestration.core.turn_coordinator import TurnCoordinator

logger = structlog.get_logger(__name__)

MODEL_FAILURE_TEXT = "Sorry, I couldn't reach my language model just now. Please try again in a moment."

router = APIRouter()


class TurnRequest(BaseModel):
    """One user utterance plus conversation history"""
    text: str = Field(min_length=1)
    history: List[ChatMessage] = Field(default_factory=list)
    session_id: Optional[str] = None


def get_coordinator(request: Request) -> TurnCoordinator:
    return request.app.state.coordinator


# REST endpoint for a single conversational turn
@router.post("/api/v1/turn", response_model=TurnResult)
async def turn_endpoint(
    request: TurnRequest,
    coordinator: Annotated[TurnCoordinator, Depends(get_coordinator)]
):
    try:
        return await coordinator.process_turn(
            request.text,
            request.history,
            session_id=request.session_id or "default"
        )
    except ModelCallError as e:
        logger.error("Turn failed on model call", kind=e.kind, error=str(e))
        return JSONResponse(status_code=502, content={"error": "model_call_failed", "say_text": MODEL_FAILURE_TEXT})


@router.get("/health")
async def health(coordinator: Annotated[TurnCoordinator, Depends(get_coordinator)]):
    return {
        "status": "ok",
        "tools": sorted(coordinator.registry.tools),
        "producers": list(coordinator.scheduler.producers),
    }


@router.get("/api/v1/status")
async def status(coordinator: Annotated[TurnCoordinator, Depends(get_coordinator)]):
    return await coordinator.status()


@router.delete("/api/v1/sessions/{session_id}")
async def end_session(session_id: str, coordinator: Annotated[TurnCoordinator, Depends(get_coordinator)]):
    await coordinator.end_session(session_id)
    return {"session_id": session_id, "status": "ended"}

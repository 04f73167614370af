from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
import time
import structlog

from voice_agent.domain.models.errors import ModelCallError
from voice_agent.domain.models.plan import ToolCall
from voice_agent.domain.models.turn_state import ChatMessage, MessageRole

logger = structlog.get_logger(__name__)


class ModelResponse(BaseModel):
    """Text and native tool calls returned by one model call"""
    text: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)
    latency_ms: int = 0
    model: str = ""


class ModelClient(ABC):
    """Chat completion contract used by the turn coordinator"""

    @abstractmethod
    async def complete(
        self,
        system_text: str,
        messages: List[ChatMessage],
        response_format: Optional[Dict[str, Any]] = None,
        tool_definitions: Optional[List[Dict[str, Any]]] = None
    ) -> ModelResponse:
        """Run one completion; raises ModelCallError on failure"""
        pass


def to_langchain_messages(system_text: str, messages: List[ChatMessage]) -> List[BaseMessage]:
    converted: List[BaseMessage] = [SystemMessage(content=system_text)]
    for message in messages:
        if message.role == MessageRole.USER:
            converted.append(HumanMessage(content=message.text))
        elif message.role == MessageRole.ASSISTANT:
            converted.append(AIMessage(content=message.text))
        else:
            converted.append(SystemMessage(content=message.text))
    return converted


def message_text(message: BaseMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def to_tool_call(call: Dict[str, Any]) -> ToolCall:
    fields = {"name": call["name"], "arguments": call.get("args") or {}}
    if call.get("id"):
        fields["id"] = call["id"]
    return ToolCall(**fields)


def classify_model_error(error: Exception) -> str:
    """auth, rate_limit or transport, from the provider's status code or exception class"""

    status = getattr(error, "status_code", None)
    if status is None:
        status = getattr(getattr(error, "response", None), "status_code", None)

    name = type(error).__name__.lower()
    if status in (401, 403) or "authentication" in name or "permissiondenied" in name:
        return "auth"
    if status == 429 or "ratelimit" in name:
        return "rate_limit"
    return "transport"


class ChatModelClient(ModelClient):
    """ModelClient backed by any langchain chat model"""

    def __init__(self, chat_model: BaseChatModel, bind_response_format: bool = False):
        self.chat_model = chat_model
        self.bind_response_format = bind_response_format

    @property
    def model_name(self) -> str:
        return (
            getattr(self.chat_model, "model_name", None)
            or getattr(self.chat_model, "model", None)
            or self.chat_model._llm_type
        )

    def _runnable(self, response_format, tool_definitions):
        runnable = self.chat_model
        if tool_definitions:
            try:
                runnable = self.chat_model.bind_tools(tool_definitions)
            except NotImplementedError:
                logger.debug("Chat model has no native tool support", model=self.model_name)
        if response_format and self.bind_response_format and not tool_definitions:
            runnable = runnable.bind(response_format=response_format)
        return runnable

    async def complete(
        self,
        system_text: str,
        messages: List[ChatMessage],
        response_format: Optional[Dict[str, Any]] = None,
        tool_definitions: Optional[List[Dict[str, Any]]] = None
    ) -> ModelResponse:
        start = time.monotonic()

        try:
            runnable = self._runnable(response_format, tool_definitions)
            reply = await runnable.ainvoke(to_langchain_messages(system_text, messages))
        except Exception as e:
            kind = classify_model_error(e)
            logger.error("Model call failed", model=self.model_name, kind=kind, error=str(e))
            raise ModelCallError(str(e) or e.__class__.__name__, kind=kind) from e

        tool_calls = [to_tool_call(call) for call in getattr(reply, "tool_calls", None) or []]

        return ModelResponse(
            text=message_text(reply),
            tool_calls=tool_calls,
            latency_ms=int((time.monotonic() - start) * 1000),
            model=self.model_name
        )

from typing import Dict, Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from enum import Enum
import uuid


class MessageRole(str, Enum):
    """Conversation roles"""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """One entry of conversation history"""
    role: MessageRole
    text: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class OutputKind(str, Enum):
    """Kinds of visual output"""
    MARKDOWN = "markdown"
    IMAGE = "image"
    CARD = "card"


class OutputItem(BaseModel):
    """A single item shown on the output canvas"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    ts: datetime = Field(default_factory=datetime.utcnow)
    kind: OutputKind
    payload: str


class ToolResult(BaseModel):
    """Result of executing a tool"""
    tool_name: str
    success: bool = True
    output: Optional[OutputItem] = None
    spoken_text: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, tool: str, output: Optional[OutputItem] = None, spoken: Optional[str] = None) -> "ToolResult":
        return cls(tool_name=tool, success=True, output=output, spoken_text=spoken)

    @classmethod
    def failure(cls, tool: str, error: str) -> "ToolResult":
        return cls(tool_name=tool, success=False, error=error)


class TurnContext(BaseModel):
    """Read-only input handed to every analysis producer"""
    user_text: str
    assistant_text: str = ""
    turn_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str = ""
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class AnalysisTaskStatus(str, Enum):
    """Outcome of one analysis producer run"""
    SUCCESS = "success"
    EMPTY = "empty"
    TIMEOUT = "timeout"
    ERROR = "error"
    DISABLED = "disabled"


class AnalysisTaskResult(BaseModel):
    """Result of running a single analysis producer"""
    name: str
    output: str = ""
    duration_ms: int = 0
    status: AnalysisTaskStatus


class AnalysisRunResult(BaseModel):
    """Aggregated results of one scheduler run"""
    results: List[AnalysisTaskResult] = Field(default_factory=list)
    context_block: str = ""

    @property
    def active_names(self) -> List[str]:
        return [r.name for r in self.results if r.status == AnalysisTaskStatus.SUCCESS]

    def by_status(self, status: AnalysisTaskStatus) -> List[AnalysisTaskResult]:
        return [r for r in self.results if r.status == status]

    @property
    def summary(self) -> str:
        """Human readable grouping of producers by status"""

        active = self.by_status(AnalysisTaskStatus.SUCCESS)
        idle = self.by_status(AnalysisTaskStatus.EMPTY)
        failed = [
            r for r in self.results
            if r.status in (AnalysisTaskStatus.TIMEOUT, AnalysisTaskStatus.ERROR)
        ]
        disabled = self.by_status(AnalysisTaskStatus.DISABLED)

        parts = []
        if active:
            parts.append("active: " + ", ".join(f"{r.name}({r.duration_ms}ms)" for r in active))
        if idle:
            parts.append("idle: " + ", ".join(f"{r.name}({r.duration_ms}ms)" for r in idle))
        if failed:
            parts.append("failed: " + ", ".join(
                f"{r.name}({r.status.value}, {r.duration_ms}ms)" for r in failed
            ))
        if disabled:
            parts.append("disabled: " + ", ".join(r.name for r in disabled))
        return " | ".join(parts)


class PromptBlock(BaseModel):
    """A named block of the instruction payload"""
    name: str
    text: str
    priority: int = Field(description="Lower priority is stripped first")
    cap: int = Field(description="Hard per-block character cap")

    @property
    def trimmed(self) -> str:
        return self.text[:self.cap]


class SessionStatus(str, Enum):
    """Session status between turns"""
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TurnResult(BaseModel):
    """Outcome of one turn, returned to the caller"""
    model_config = ConfigDict(frozen=True)

    say_text: str
    output_items: List[OutputItem] = Field(default_factory=list)
    latency_ms: int = 0
    used_memory: bool = False
    tool_calls: List[str] = Field(default_factory=list)
    analysis_summary: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)

from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator, model_validator
import json
import uuid


def stringify_arg(value: Any) -> str:
    """Render a JSON argument value as the string a tool receives"""
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


class TalkStep(BaseModel):
    """Speak some text"""
    step: Literal["talk"] = "talk"
    say: str


class ToolStep(BaseModel):
    """Call a tool, optionally speaking afterwards"""
    step: Literal["tool"] = "tool"
    name: str
    args: Dict[str, str] = Field(default_factory=dict)
    say: Optional[str] = None

    @field_validator("args", mode="before")
    @classmethod
    def _stringify_args(cls, value: Any) -> Dict[str, str]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("args must be an object")
        return {str(key): stringify_arg(val) for key, val in value.items()}


class AskStep(BaseModel):
    """Ask the user to fill one or more slots"""
    step: Literal["ask"] = "ask"
    slots: List[str]
    prompt: str

    @model_validator(mode="before")
    @classmethod
    def _collect_slots(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        slots = cls._split_slots(data.get("slots"))
        if not slots:
            slots = cls._split_slots(data.get("slot"))

        if not slots:
            raise ValueError("ask step requires a non-empty slot or slots")

        return {**data, "slots": slots}

    @staticmethod
    def _split_slots(raw: Any) -> List[str]:
        if raw is None:
            return []
        if isinstance(raw, str):
            raw = raw.split(",")
        if not isinstance(raw, list):
            raise ValueError("slots must be a list or a comma-separated string")
        return [str(s).strip() for s in raw if str(s).strip()]


class DelegateStep(BaseModel):
    """Hand a task to an external handler"""
    step: Literal["delegate"] = "delegate"
    task: str
    context: Optional[str] = None
    say: Optional[str] = None


PlanStep = Annotated[
    Union[TalkStep, ToolStep, AskStep, DelegateStep],
    Field(discriminator="step")
]


class ToolCall(BaseModel):
    """A structured tool call returned natively by the model"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    arguments: Dict[str, str] = Field(default_factory=dict)

    @field_validator("arguments", mode="before")
    @classmethod
    def _stringify_arguments(cls, value: Any) -> Dict[str, str]:
        if not value:
            return {}
        if not isinstance(value, dict):
            raise ValueError("arguments must be an object")
        return {str(key): stringify_arg(val) for key, val in value.items()}


class Plan(BaseModel):
    """Ordered steps plus optional top-level spoken text"""
    steps: List[PlanStep]
    say: Optional[str] = None

    @field_validator("steps", mode="before")
    @classmethod
    def _normalize_step_types(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        normalized = []
        for item in value:
            if isinstance(item, dict) and isinstance(item.get("step"), str):
                item = {**item, "step": item["step"].strip().lower()}
            normalized.append(item)
        return normalized

    @property
    def is_empty(self) -> bool:
        """No speech and no step that does anything beyond blank talk"""
        if (self.say or "").strip():
            return False
        return not any(
            not isinstance(step, TalkStep) or step.say.strip()
            for step in self.steps
        )

    @classmethod
    def talk(cls, text: str) -> "Plan":
        return cls(steps=[TalkStep(say=text)])

    @classmethod
    def from_tool_calls(cls, tool_calls: List[ToolCall], spoken_text: Optional[str] = None) -> "Plan":
        """Build a plan from native tool calls"""

        steps: List[Any] = []
        if spoken_text:
            steps.append(TalkStep(say=spoken_text))
        for call in tool_calls:
            steps.append(ToolStep(name=call.name, args=call.arguments))
        return cls(steps=steps)

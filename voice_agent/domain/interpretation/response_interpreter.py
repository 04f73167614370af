from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ValidationError
import json
import re
import structlog

from voice_agent.domain.models.plan import DelegateStep, Plan, TalkStep, ToolCall, ToolStep

logger = structlog.get_logger(__name__)

EMPTY_REPLY_TEXT = "I'm not sure how to respond to that."

_FENCED = re.compile(r"```(?:json)?(.*?)```", re.DOTALL)


class TalkAction(BaseModel):
    say: str

    def to_plan(self) -> Plan:
        return Plan.talk(self.say)


class ToolAction(BaseModel):
    name: str
    args: Optional[Dict[str, Any]] = None
    say: Optional[str] = None

    def to_plan(self) -> Plan:
        return Plan(steps=[ToolStep(name=self.name, args=self.args or {})], say=self.say)


class DelegateAction(BaseModel):
    task: str
    context: Optional[str] = None
    say: Optional[str] = None

    def to_plan(self) -> Plan:
        return Plan(steps=[DelegateStep(task=self.task, context=self.context, say=self.say)])


class CapabilityGapAction(BaseModel):
    goal: str
    missing: str
    say: Optional[str] = None

    def to_plan(self) -> Plan:
        steps: List[Any] = []
        if self.say:
            steps.append(TalkStep(say=self.say))
        steps.append(DelegateStep(task=f"capability_gap: {self.goal}", context=f"missing: {self.missing}"))
        return Plan(steps=steps)


ACTION_TYPES = {
    "TALK": TalkAction,
    "TOOL": ToolAction,
    "DELEGATE": DelegateAction,
    "DELEGATE_OPENAI": DelegateAction,
    "CAPABILITY_GAP": CapabilityGapAction,
}


def extract_json(text: str) -> Optional[str]:
    """Locate a JSON payload in text that may carry fences or preamble"""

    if text.startswith("{") or text.startswith("["):
        return text

    fenced = _FENCED.search(text)
    if fenced:
        return fenced.group(1).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]

    return None


class ResponseInterpreter:
    """Turns a model reply into a Plan; never raises"""

    def interpret(self, text: Optional[str]) -> Plan:
        trimmed = (text or "").strip()
        if not trimmed:
            return Plan.talk(EMPTY_REPLY_TEXT)

        payload = self._load_json(trimmed)
        if payload is not None:
            plan = self._decode_plan(payload) or self._decode_action(payload)
            if plan is not None:
                return plan

        return Plan.talk(trimmed)

    def from_model_response(self, text: Optional[str], tool_calls: Optional[List[ToolCall]] = None) -> Plan:
        """Native tool calls bypass text parsing"""

        if tool_calls:
            spoken = (text or "").strip() or None
            return Plan.from_tool_calls(tool_calls, spoken)
        return self.interpret(text)

    @staticmethod
    def _load_json(text: str) -> Any:
        candidate = extract_json(text)
        if candidate is None:
            return None
        try:
            return json.loads(candidate)
        except (ValueError, RecursionError):
            return None

    @staticmethod
    def _decode_plan(payload: Any) -> Optional[Plan]:
        if not isinstance(payload, dict) or "steps" not in payload:
            return None
        try:
            plan = Plan.model_validate(payload)
        except ValidationError as e:
            logger.debug("Reply is not a plan", errors=e.error_count())
            return None

        if plan.is_empty:
            return None
        if not plan.steps:
            return Plan.talk(plan.say)
        return plan

    @staticmethod
    def _decode_action(payload: Any) -> Optional[Plan]:
        if not isinstance(payload, dict) or not isinstance(payload.get("action"), str):
            return None

        raw_action = payload["action"].strip()
        action_type = ACTION_TYPES.get(raw_action.upper())

        try:
            if action_type is None:
                # The action value is the tool name itself
                data = {**payload, "name": payload.get("name") or raw_action}
                if not isinstance(data.get("args"), dict):
                    data["args"] = {}
                plan = ToolAction.model_validate(data).to_plan()
            else:
                plan = action_type.model_validate(payload).to_plan()
        except ValidationError as e:
            logger.debug("Reply is not an action envelope", action=raw_action, errors=e.error_count())
            return None

        if plan.is_empty:
            return None
        return plan

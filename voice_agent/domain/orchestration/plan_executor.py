from typing import List
from pydantic import BaseModel, Field
import structlog

from voice_agent.domain.models.plan import AskStep, DelegateStep, Plan, TalkStep, ToolStep
from voice_agent.domain.models.turn_state import OutputItem
from voice_agent.domain.tool.tool_registry import ToolRegistry
from voice_agent.infrastructure.observability.logging import metrics

logger = structlog.get_logger(__name__)


class PlanExecutionResult(BaseModel):
    """Spoken text, canvas output and tool names produced by one plan"""
    spoken_text: str = ""
    output_items: List[OutputItem] = Field(default_factory=list)
    tool_calls: List[str] = Field(default_factory=list)


class PlanExecutor:
    """Walks plan steps in order, running tools and collecting speech"""

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def execute(self, plan: Plan) -> PlanExecutionResult:
        spoken: List[str] = []
        output_items: List[OutputItem] = []
        tool_calls: List[str] = []

        if plan.say:
            spoken.append(plan.say)

        for step in plan.steps:
            if isinstance(step, TalkStep):
                spoken.append(step.say)

            elif isinstance(step, ToolStep):
                tool_calls.append(step.name)
                metrics.increment_counter("tool_calls", tags={"tool": step.name})

                tool = self.registry.get(step.name)
                if tool is None:
                    logger.info("Plan referenced unknown tool", tool=step.name)
                    spoken.append(f"I don't have a tool called {step.name}.")
                else:
                    result = await self.registry.execute(tool.name, step.args)
                    if result.output:
                        output_items.append(result.output)
                    if result.spoken_text:
                        spoken.append(result.spoken_text)
                    if result.error:
                        spoken.append(f"Tool error: {result.error}")

                if step.say:
                    spoken.append(step.say)

            elif isinstance(step, AskStep):
                spoken.append(step.prompt)

            elif isinstance(step, DelegateStep):
                spoken.append(step.say or f"I'll need to handle: {step.task}")

        return PlanExecutionResult(
            spoken_text=" ".join(part for part in spoken if part),
            output_items=output_items,
            tool_calls=tool_calls
        )

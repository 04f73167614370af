from typing import List, Optional
import structlog

from voice_agent.domain.models.turn_state import PromptBlock
from voice_agent.infrastructure.config.settings import PipelineSettings
from .instructions import ANTI_REPETITION_HEADER, RESPONSE_RULES, identity_block

logger = structlog.get_logger(__name__)

# Strip priorities; lower is dropped first when over budget
HISTORY_PRIORITY = 1
TEMPORAL_PRIORITY = 2
STATE_PRIORITY = 3
ANALYSIS_PRIORITY = 5
CONTEXT_PRIORITY = 6

MAX_RECENT_RESPONSES = 5
RECENT_RESPONSE_CHARS = 80


class PromptAssembler:
    """Builds the system instruction payload under a character budget"""

    def __init__(self, settings: Optional[PipelineSettings] = None):
        self.settings = settings or PipelineSettings()

    def fixed_blocks(self, tool_manifest: str) -> List[str]:
        return [identity_block(self.settings.user_name), RESPONSE_RULES, tool_manifest]

    def variable_blocks(
        self,
        context_block: str,
        analysis_block: str,
        history_text: str,
        current_state: str,
        temporal_context: str
    ) -> List[PromptBlock]:
        caps = self.settings.prompt_budget
        return [
            PromptBlock(name="history", text=history_text, priority=HISTORY_PRIORITY, cap=caps.conversation_history),
            PromptBlock(name="temporal", text=temporal_context, priority=TEMPORAL_PRIORITY, cap=caps.temporal),
            PromptBlock(name="current_state", text=current_state, priority=STATE_PRIORITY, cap=caps.current_state),
            PromptBlock(name="analysis", text=analysis_block, priority=ANALYSIS_PRIORITY, cap=caps.analysis),
            PromptBlock(name="context", text=context_block, priority=CONTEXT_PRIORITY, cap=caps.context),
        ]

    def assemble(
        self,
        context_block: str = "",
        analysis_block: str = "",
        tool_manifest: str = "",
        history_text: str = "",
        current_state: str = "",
        temporal_context: str = "",
        recent_responses: Optional[List[str]] = None,
        budget: Optional[int] = None
    ) -> str:
        """Assemble the payload, stripping low-priority blocks until it fits"""

        budget = self.settings.prompt_budget.total if budget is None else budget

        fixed = self.fixed_blocks(tool_manifest)
        fixed_size = sum(len(text) for text in fixed)

        included = self.variable_blocks(
            context_block, analysis_block, history_text, current_state, temporal_context
        )
        total_size = fixed_size + sum(len(block.trimmed) for block in included)

        stripped = []
        while total_size > budget and included:
            lowest = min(included, key=lambda block: block.priority)
            included.remove(lowest)
            total_size -= len(lowest.trimmed)
            stripped.append(lowest.name)

        if stripped:
            logger.info("Prompt blocks stripped", stripped=stripped, budget=budget, size=total_size)

        parts = [text for text in fixed if text]
        for block in sorted(included, key=lambda block: block.priority, reverse=True):
            if block.trimmed:
                parts.append(block.trimmed)

        anti_repetition = self.anti_repetition_block(recent_responses or [])
        if anti_repetition:
            parts.append(anti_repetition)

        return "\n\n".join(parts)

    @staticmethod
    def anti_repetition_block(recent_responses: List[str]) -> str:
        recent = [r for r in recent_responses if r][-MAX_RECENT_RESPONSES:]
        if not recent:
            return ""
        quoted = "\n".join(f'- "{r[:RECENT_RESPONSE_CHARS]}"' for r in recent)
        return f"{ANTI_REPETITION_HEADER}\n{quoted}"

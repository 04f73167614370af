from typing import Dict
import asyncio
import time
import structlog

from voice_agent.domain.models.turn_state import ToolResult
from voice_agent.infrastructure.observability.logging import agent_logger, metrics
from .base_tool import BaseTool
from .tool_validator import ToolParameterValidator

logger = structlog.get_logger(__name__)


class ToolExecutor:
    """Runs a single tool with validation, a timeout and error capture"""

    def __init__(self, default_timeout: float = 30.0):
        self.default_timeout = default_timeout

    async def execute_tool(self, tool: BaseTool, parameters: Dict[str, str]) -> ToolResult:
        validation = ToolParameterValidator.validate_tool_call(tool, parameters)
        if not validation.is_valid:
            error = "; ".join(validation.errors)
            agent_logger.log_tool_execution(tool.name, parameters, success=False, error=error)
            return ToolResult.failure(tool.name, error)

        timeout = tool.timeout_seconds or self.default_timeout
        start = time.monotonic()

        try:
            result = await asyncio.wait_for(tool.execute(parameters), timeout=timeout)
        except asyncio.TimeoutError:
            result = ToolResult.failure(tool.name, "Tool execution timeout")
        except Exception as e:
            logger.warning("Tool raised", tool=tool.name, error=str(e))
            result = ToolResult.failure(tool.name, str(e) or e.__class__.__name__)

        duration_ms = (time.monotonic() - start) * 1000
        metrics.record_latency("tool_execution", duration_ms, tags={"tool": tool.name})
        agent_logger.log_tool_execution(
            tool.name,
            parameters,
            duration_ms=duration_ms,
            success=result.success,
            error=result.error
        )

        return result

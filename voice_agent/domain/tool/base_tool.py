from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

from voice_agent.domain.models.turn_state import ToolResult


class BaseTool(ABC):
    """Base class for tools the plan executor can call"""

    name: str = ""
    description: str = ""
    parameter_description: str = ""
    # JSON schema for arguments; tools with a schema are offered as native tool definitions
    schema: Optional[Dict[str, Any]] = None
    timeout_seconds: Optional[float] = None

    @abstractmethod
    async def execute(self, args: Dict[str, str]) -> ToolResult:
        """Run the tool with string arguments"""
        pass

    def manifest_line(self) -> str:
        line = f"- {self.name}: {self.description}"
        if self.parameter_description:
            line += f" {self.parameter_description}"
        return line

    def get_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.schema or {},
        }

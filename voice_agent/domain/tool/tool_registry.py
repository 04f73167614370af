from typing import Dict, List, Any, Optional
import re
import structlog

from voice_agent.domain.models.errors import ToolNotFoundError
from voice_agent.domain.models.turn_state import ToolResult
from .base_tool import BaseTool
from .tool_executor import ToolExecutor
from .builtin.core_tools import GetTimeTool, ShowImageTool, ShowTextTool
from .builtin.memory_tools import (
    ClearMemoriesTool, DeleteMemoryTool, ListMemoriesTool, SaveMemoryTool
)

logger = structlog.get_logger(__name__)


# Alternate names models commonly use for the built-in tools
DEFAULT_ALIASES: Dict[str, str] = {
    # Time
    "time": "get_time", "gettime": "get_time",
    "what_time": "get_time", "whattime": "get_time",
    "clock": "get_time", "current_time": "get_time",

    # Canvas
    "showtext": "show_text", "text": "show_text", "display_text": "show_text",
    "showimage": "show_image", "image": "show_image", "display_image": "show_image",

    # Memory
    "savememory": "save_memory", "remember": "save_memory", "memorize": "save_memory",
    "listmemories": "list_memories", "memories": "list_memories", "recall": "list_memories",
    "deletememory": "delete_memory", "forget": "delete_memory",
    "clearmemories": "clear_memories", "forget_all": "clear_memories",
}

_SEPARATORS = re.compile(r"[\s\-]+")


def camel_to_snake(text: str) -> str:
    """getTime -> get_time"""
    result = []
    for i, char in enumerate(text):
        if char.isupper() and i > 0 and text[i - 1] != "_":
            result.append("_")
        result.append(char.lower())
    return "".join(result)


class ToolRegistry:
    """Registry of tools with name normalization and alias lookup"""

    def __init__(self, executor: Optional[ToolExecutor] = None):
        self.tools: Dict[str, BaseTool] = {}
        self.aliases: Dict[str, str] = {}
        self.executor = executor or ToolExecutor()

    def register_tool(self, tool: BaseTool):
        """Register a new tool"""

        self.tools[tool.name] = tool

    def register_aliases(self, mapping: Dict[str, str]):
        """Register a batch of alias -> canonical name mappings"""

        for alias, canonical in mapping.items():
            self.aliases[alias.lower()] = canonical

    def _lookup(self, candidate: str) -> Optional[str]:
        if candidate in self.tools:
            return candidate
        canonical = self.aliases.get(candidate)
        if canonical and canonical in self.tools:
            return canonical
        return None

    def resolve(self, raw_name: str) -> Optional[str]:
        """Normalize a free-form tool name to a registered canonical name"""

        if not raw_name or not raw_name.strip():
            return None

        stripped = _SEPARATORS.sub("_", raw_name.strip())

        resolved = self._lookup(stripped.lower())
        if resolved:
            return resolved

        resolved = self._lookup(camel_to_snake(stripped))
        if resolved:
            return resolved

        logger.debug("Tool name unresolved", raw_name=raw_name)
        return None

    def get(self, raw_name: str) -> Optional[BaseTool]:
        canonical = self.resolve(raw_name)
        return self.tools.get(canonical) if canonical else None

    def get_or_raise(self, raw_name: str) -> BaseTool:
        tool = self.get(raw_name)
        if tool is None:
            raise ToolNotFoundError(raw_name)
        return tool

    async def execute(self, name: str, args: Dict[str, str]) -> ToolResult:
        """Execute a tool by (possibly non-canonical) name"""

        tool = self.get(name)
        if tool is None:
            return ToolResult.failure(name, f"Tool not found: {name}")
        return await self.executor.execute_tool(tool, args)

    def get_available_tools(self) -> List[Dict[str, Any]]:
        """Get info for all registered tools"""

        return [tool.get_info() for tool in self.tools.values()]

    def build_tool_manifest(self) -> str:
        """Text manifest of tools that have no native schema"""

        text_only = [tool for tool in self.tools.values() if not tool.schema]
        if not text_only:
            return ""
        return "[AVAILABLE TOOLS]\n" + "\n".join(tool.manifest_line() for tool in text_only)

    def build_tool_definitions(self) -> List[Dict[str, Any]]:
        """OpenAI-style function definitions for tools with a schema"""

        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.schema,
                },
            }
            for tool in self.tools.values()
            if tool.schema
        ]

    def register_defaults(self, memory_store=None):
        """Register built-in tools and the default alias table"""

        self.register_tool(ShowTextTool())
        self.register_tool(ShowImageTool())
        self.register_tool(GetTimeTool())

        if memory_store is not None:
            self.register_tool(SaveMemoryTool(memory_store))
            self.register_tool(ListMemoriesTool(memory_store))
            self.register_tool(DeleteMemoryTool(memory_store))
            self.register_tool(ClearMemoriesTool(memory_store))

        self.register_aliases(DEFAULT_ALIASES)

from typing import Dict

from voice_agent.domain.models.memory import MemoryCategory
from voice_agent.domain.models.turn_state import ToolResult
from ..base_tool import BaseTool


def _parse_category(raw: str, default=None):
    try:
        return MemoryCategory(raw.strip().lower())
    except ValueError:
        return default


class SaveMemoryTool(BaseTool):
    """Saves a memory entry"""

    name = "save_memory"
    description = "Save a memory (fact, preference, note, or check-in)"
    parameter_description = "Args: type (fact/preference/note/checkin), content (string)"
    schema = {
        "type": "object",
        "properties": {
            "type": {"type": "string", "enum": [c.value for c in MemoryCategory]},
            "content": {"type": "string", "description": "The content to remember"},
        },
        "required": ["content"],
    }

    def __init__(self, memory_store):
        self.memory_store = memory_store

    async def execute(self, args: Dict[str, str]) -> ToolResult:
        content = args.get("content") or args.get("text") or args.get("memory") or ""
        if not content.strip():
            return ToolResult.failure(self.name, "No content provided")

        category = _parse_category(args.get("type", ""), MemoryCategory.FACT)
        record = await self.memory_store.add_memory(category, content.strip(), origin="user_explicit")
        return ToolResult.ok(self.name, spoken=f"Saved {category.value}: {record.text} ({record.short_id})")


class ListMemoriesTool(BaseTool):
    """Lists stored memories"""

    name = "list_memories"
    description = "List stored memories, optionally filtered by type"
    parameter_description = "Args: type (optional: fact/preference/note/checkin)"

    def __init__(self, memory_store):
        self.memory_store = memory_store

    async def execute(self, args: Dict[str, str]) -> ToolResult:
        category = _parse_category(args.get("type", ""))
        memories = await self.memory_store.list_memories(category)
        if not memories:
            return ToolResult.ok(self.name, spoken="No memories found.")

        listing = "; ".join(f"[{m.category.value}] {m.text}" for m in memories[:20])
        return ToolResult.ok(self.name, spoken=f"I have {len(memories)} memories: {listing}")


class DeleteMemoryTool(BaseTool):
    """Deletes a memory by id or short id"""

    name = "delete_memory"
    description = "Delete a specific memory by its ID"
    parameter_description = "Args: id (memory ID or short ID)"

    def __init__(self, memory_store):
        self.memory_store = memory_store

    async def execute(self, args: Dict[str, str]) -> ToolResult:
        memory_id = args.get("id") or args.get("memory_id") or ""
        if not memory_id:
            return ToolResult.failure(self.name, "No memory ID provided")

        if not await self.memory_store.delete_memory(memory_id):
            return ToolResult.failure(self.name, f"Memory not found: {memory_id}")
        return ToolResult.ok(self.name, spoken="Memory deleted.")


class ClearMemoriesTool(BaseTool):
    """Clears all memories"""

    name = "clear_memories"
    description = "Clear all stored memories"
    parameter_description = "No args"

    def __init__(self, memory_store):
        self.memory_store = memory_store

    async def execute(self, args: Dict[str, str]) -> ToolResult:
        count = await self.memory_store.clear_memories()
        return ToolResult.ok(self.name, spoken=f"All memories have been cleared ({count}).")

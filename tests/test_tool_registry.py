import asyncio

import pytest

from voice_agent.domain.context.memory.memory_store import InMemoryMemoryStore
from voice_agent.domain.models.errors import ToolNotFoundError
from voice_agent.domain.models.turn_state import ToolResult
from voice_agent.domain.tool.base_tool import BaseTool
from voice_agent.domain.tool.tool_registry import ToolRegistry, camel_to_snake


class PlayMusicTool(BaseTool):
    name = "play_music"
    description = "Play a song"

    async def execute(self, args):
        return ToolResult.ok(self.name, spoken=f"Playing {args.get('song', 'something')}.")


class SlowTool(BaseTool):
    name = "slow_tool"
    description = "Never finishes in time"
    timeout_seconds = 0.05

    async def execute(self, args):
        await asyncio.sleep(1.0)
        return ToolResult.ok(self.name, spoken="too late")


class ExplodingTool(BaseTool):
    name = "exploding_tool"
    description = "Always raises"

    async def execute(self, args):
        raise RuntimeError("kaboom")


@pytest.fixture
def registry():
    registry = ToolRegistry()
    registry.register_defaults()
    registry.register_tool(PlayMusicTool())
    return registry


@pytest.mark.parametrize("raw, expected", [
    ("get_time", "get_time"),
    ("Get Time", "get_time"),
    ("get-time", "get_time"),
    ("  GET_TIME ", "get_time"),
    ("getTime", "get_time"),
    ("clock", "get_time"),
    ("playMusic", "play_music"),
    ("Play-Music", "play_music"),
    ("display_text", "show_text"),
])
def test_resolve_normalizes_names(registry, raw, expected):
    assert registry.resolve(raw) == expected


@pytest.mark.parametrize("raw", ["nonexistent_tool", "", "   ", "remember"])
def test_resolve_returns_none_for_unknown_names(registry, raw):
    assert registry.resolve(raw) is None


def test_camel_to_snake():
    assert camel_to_snake("getTime") == "get_time"
    assert camel_to_snake("listAllMemories") == "list_all_memories"
    assert camel_to_snake("already_snake") == "already_snake"


def test_memory_aliases_resolve_once_memory_tools_are_registered():
    registry = ToolRegistry()
    registry.register_defaults(InMemoryMemoryStore())

    assert registry.resolve("remember") == "save_memory"
    assert registry.resolve("forgetAll") == "clear_memories"


def test_get_or_raise(registry):
    assert registry.get_or_raise("showText").name == "show_text"
    with pytest.raises(ToolNotFoundError):
        registry.get_or_raise("teleport")


def test_manifest_and_definitions_split_on_schema(registry):
    manifest = registry.build_tool_manifest()
    definitions = registry.build_tool_definitions()

    assert manifest.startswith("[AVAILABLE TOOLS]\n")
    assert "- show_text:" in manifest
    assert "get_time" not in manifest
    assert [d["function"]["name"] for d in definitions] == ["get_time"]
    assert definitions[0]["type"] == "function"


def test_execute_validates_against_schema():
    registry = ToolRegistry()
    registry.register_defaults(InMemoryMemoryStore())

    result = asyncio.run(registry.execute("save_memory", {"type": "fact"}))

    assert not result.success
    assert result.error.startswith("Schema validation failed")


def test_execute_runs_memory_tools_end_to_end():
    async def scenario():
        store = InMemoryMemoryStore()
        registry = ToolRegistry()
        registry.register_defaults(store)
        saved = await registry.execute("remember", {"type": "preference", "content": "likes jazz"})
        listed = await registry.execute("list_memories", {})
        return saved, listed

    saved, listed = asyncio.run(scenario())

    assert saved.spoken_text.startswith("Saved preference: likes jazz (")
    assert listed.spoken_text == "I have 1 memories: [preference] likes jazz"


def test_execute_reports_unknown_timezone(registry):
    result = asyncio.run(registry.execute("get_time", {"timezone": "Mars/Olympus_Mons"}))

    assert not result.success
    assert result.error == "Unknown timezone: Mars/Olympus_Mons"


def test_execute_enforces_tool_timeout():
    registry = ToolRegistry()
    registry.register_tool(SlowTool())

    result = asyncio.run(registry.execute("slow_tool", {}))

    assert not result.success
    assert result.error == "Tool execution timeout"


def test_execute_turns_exceptions_into_failures():
    registry = ToolRegistry()
    registry.register_tool(ExplodingTool())

    result = asyncio.run(registry.execute("exploding_tool", {}))

    assert not result.success
    assert result.error == "kaboom"


def test_execute_unknown_tool_fails_without_raising(registry):
    result = asyncio.run(registry.execute("teleport", {}))

    assert not result.success
    assert result.tool_name == "teleport"

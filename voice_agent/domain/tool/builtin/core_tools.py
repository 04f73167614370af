from typing import Dict
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from voice_agent.domain.models.turn_state import OutputItem, OutputKind, ToolResult
from ..base_tool import BaseTool


class ShowTextTool(BaseTool):
    """Displays markdown text on the output canvas"""

    name = "show_text"
    description = "Display markdown text on the output canvas"
    parameter_description = "Args: markdown|text|content (string)"

    async def execute(self, args: Dict[str, str]) -> ToolResult:
        text = args.get("markdown") or args.get("text") or args.get("content") or ""
        if not text:
            return ToolResult.failure(self.name, "No text provided")
        return ToolResult.ok(self.name, output=OutputItem(kind=OutputKind.MARKDOWN, payload=text))


class ShowImageTool(BaseTool):
    """Displays an image URL on the output canvas"""

    name = "show_image"
    description = "Display an image from a URL on the output canvas"
    parameter_description = "Args: url (string)"

    async def execute(self, args: Dict[str, str]) -> ToolResult:
        url = args.get("url") or args.get("image_url") or args.get("src") or ""
        if not url:
            return ToolResult.failure(self.name, "No image URL provided")
        return ToolResult.ok(self.name, output=OutputItem(kind=OutputKind.IMAGE, payload=url))


class GetTimeTool(BaseTool):
    """Returns the current time, optionally in a given IANA timezone"""

    name = "get_time"
    description = "Get the current time, optionally for a specific timezone"
    parameter_description = "Args: timezone (IANA ID), place (label to speak)"
    schema = {
        "type": "object",
        "properties": {
            "timezone": {"type": "string", "description": "IANA timezone ID (e.g. America/New_York)"},
            "place": {"type": "string", "description": "City or location name"},
        },
        "required": [],
    }

    async def execute(self, args: Dict[str, str]) -> ToolResult:
        tz_name = args.get("timezone") or args.get("tz") or ""
        place = args.get("place") or args.get("city") or ""

        tz = timezone.utc
        if tz_name and tz_name.upper() not in ("UTC", "GMT", "Z"):
            try:
                tz = ZoneInfo(tz_name)
            except (ZoneInfoNotFoundError, ValueError):
                return ToolResult.failure(self.name, f"Unknown timezone: {tz_name}")

        now = datetime.now(tz)
        time_str = now.strftime("%I:%M %p").lstrip("0")
        date_str = now.strftime("%A, %B %d, %Y")
        label = place or tz_name or "UTC"

        return ToolResult.ok(
            self.name,
            output=OutputItem(kind=OutputKind.MARKDOWN, payload=f"**{time_str}**\n{date_str}\n*{label}*"),
            spoken=f"It's {time_str} in {label}."
        )

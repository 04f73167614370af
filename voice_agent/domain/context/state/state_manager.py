from typing import Dict, Any, List, Optional
import asyncio
from datetime import datetime

from voice_agent.domain.models.turn_state import SessionStatus


class SessionStateManager:
    """Tracks per-session status between turns"""

    def __init__(self):
        self.states: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    def _new_state(self, session_id: str) -> Dict[str, Any]:
        now = datetime.utcnow().isoformat()
        return {
            "session_id": session_id,
            "status": SessionStatus.IDLE.value,
            "turn_count": 0,
            "last_tool_calls": [],
            "created_at": now,
            "last_updated": now
        }

    async def get_current_state(self, session_id: str) -> Dict[str, Any]:
        """Get current state for a session"""

        async with self._lock:
            return dict(self.states.get(session_id) or self._new_state(session_id))

    async def update_state(self, session_id: str, updates: Dict[str, Any]):
        """Update state for a session"""

        async with self._lock:
            state = self.states.setdefault(session_id, self._new_state(session_id))
            state.update(updates)
            state["last_updated"] = datetime.utcnow().isoformat()

    async def begin_turn(self, session_id: str):
        await self.update_state(session_id, {"status": SessionStatus.PROCESSING.value})

    async def complete_turn(self, session_id: str, tool_calls: Optional[List[str]] = None, failed: bool = False):
        """Record the outcome of the turn that just finished"""

        async with self._lock:
            state = self.states.setdefault(session_id, self._new_state(session_id))
            state["status"] = (SessionStatus.FAILED if failed else SessionStatus.COMPLETED).value
            state["turn_count"] += 1
            state["last_tool_calls"] = list(tool_calls or [])
            state["last_updated"] = datetime.utcnow().isoformat()

    async def build_current_state(self, session_id: str, now: Optional[datetime] = None) -> str:
        """Short text block describing the current moment and session"""

        state = await self.get_current_state(session_id)
        now = now or datetime.now()

        lines = [
            "[CURRENT STATE]",
            f"Current time: {now.strftime('%A, %B %d, %Y %H:%M')}",
            f"Session turns so far: {state['turn_count']}",
            f"Last turn status: {state['status']}",
        ]
        if state["last_tool_calls"]:
            lines.append(f"Tools used last turn: {', '.join(state['last_tool_calls'])}")
        return "\n".join(lines)

    async def clear_state(self, session_id: str):
        """Clear state for a session"""

        async with self._lock:
            self.states.pop(session_id, None)

    async def get_all_active_sessions(self) -> Dict[str, Dict[str, Any]]:
        """Get all active session states"""

        async with self._lock:
            return {session_id: dict(state) for session_id, state in self.states.items()}

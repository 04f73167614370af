from abc import ABC, abstractmethod
from typing import Dict, Any, Iterable
from datetime import datetime
import asyncio

from voice_agent.domain.models.turn_state import TurnContext


def contains_any(text: str, cues: Iterable[str]) -> bool:
    return any(cue in text for cue in cues)


class AnalysisProducer(ABC):
    """Base class for concurrent per-turn analysis producers"""

    name: str = ""
    description: str = ""

    def __init__(self):
        self.created_at = datetime.utcnow()
        self.last_active = datetime.utcnow()
        self._lock = asyncio.Lock()

    @property
    def flag_key(self) -> str:
        return f"analysis_{self.name}"

    @abstractmethod
    async def analyze(self, context: TurnContext) -> str:
        """Return insight text for this turn, or an empty string"""
        pass

    async def run(self, context: TurnContext) -> str:
        """Run under the producer lock so cross-turn state has a single writer"""

        async with self._lock:
            self.update_activity()
            return await self.analyze(context)

    def update_activity(self):
        """Update last activity timestamp"""
        self.last_active = datetime.utcnow()

    def get_info(self) -> Dict[str, Any]:
        """Get producer information"""
        return {
            "name": self.name,
            "flag_key": self.flag_key,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "last_active": self.last_active.isoformat()
        }

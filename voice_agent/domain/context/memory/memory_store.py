from abc import ABC, abstractmethod
from typing import Deque, Dict, List, Optional, Tuple
from collections import deque
from datetime import datetime
import asyncio
import structlog

from voice_agent.domain.models.memory import (
    IdentityFact, MemoryCategory, MemoryRecord, default_expiry
)
from voice_agent.domain.context.context_ranker import tokenize

logger = structlog.get_logger(__name__)

TEMPORAL_WORDS = ["yesterday", "last week", "today", "this morning", "earlier", "before"]


class MemoryStore(ABC):
    """Query/write contract of the long-term store"""

    @abstractmethod
    async def query(self, text: str, limit: int) -> List[MemoryRecord]:
        pass

    @abstractmethod
    async def active_memories(self) -> List[MemoryRecord]:
        pass

    @abstractmethod
    async def identity_facts(self, limit: int) -> List[IdentityFact]:
        pass

    @abstractmethod
    async def write(self, record: MemoryRecord) -> MemoryRecord:
        pass

    @abstractmethod
    async def add_memory(self, category: MemoryCategory, text: str, origin: str = "conversation") -> MemoryRecord:
        pass

    @abstractmethod
    async def list_memories(self, category: Optional[MemoryCategory] = None) -> List[MemoryRecord]:
        pass

    @abstractmethod
    async def delete_memory(self, memory_id: str) -> bool:
        pass

    @abstractmethod
    async def clear_memories(self) -> int:
        pass

    @abstractmethod
    async def prune_expired(self) -> int:
        pass

    @abstractmethod
    async def upsert_identity_fact(self, attribute: str, value: str, confidence: float = 0.8) -> IdentityFact:
        pass

    @abstractmethod
    async def store_embedding(self, memory_id: str, embedding: List[float]) -> None:
        pass

    async def temporal_context(self, query: str, max_chars: int) -> str:
        return ""

    async def record_message(self, session_id: str, role: str, text: str) -> None:
        return None


class InMemoryMemoryStore(MemoryStore):
    """Process-local memory store"""

    def __init__(self, max_messages: int = 100):
        self.memories: Dict[str, MemoryRecord] = {}
        self.facts: Dict[str, IdentityFact] = {}
        self.messages: Deque[Tuple[str, str, str, datetime]] = deque(maxlen=max_messages)
        self._lock = asyncio.Lock()

    async def write(self, record: MemoryRecord) -> MemoryRecord:
        async with self._lock:
            self.memories[record.id] = record
            return record

    async def add_memory(self, category: MemoryCategory, text: str, origin: str = "conversation") -> MemoryRecord:
        now = datetime.utcnow()
        record = MemoryRecord(
            category=category,
            text=text,
            origin=origin,
            created_at=now,
            updated_at=now,
            expires_at=default_expiry(category, now)
        )
        return await self.write(record)

    async def get(self, memory_id: str) -> Optional[MemoryRecord]:
        async with self._lock:
            return self.memories.get(memory_id)

    async def active_memories(self) -> List[MemoryRecord]:
        async with self._lock:
            now = datetime.utcnow()
            return [m for m in self.memories.values() if m.active and not m.is_expired(now)]

    async def query(self, text: str, limit: int) -> List[MemoryRecord]:
        """Keyword match over active memories, best overlap first"""

        query_tokens = set(tokenize(text))
        if not query_tokens:
            return []

        matches = []
        for memory in await self.active_memories():
            overlap = len(query_tokens & set(tokenize(memory.text)))
            if overlap:
                matches.append((overlap, memory.updated_at, memory))

        matches.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [memory for _, _, memory in matches[:limit]]

    async def list_memories(self, category: Optional[MemoryCategory] = None) -> List[MemoryRecord]:
        memories = await self.active_memories()
        if category is not None:
            memories = [m for m in memories if m.category == category]
        return sorted(memories, key=lambda m: m.updated_at, reverse=True)

    async def delete_memory(self, memory_id: str) -> bool:
        """Soft delete by full id or short id"""

        async with self._lock:
            needle = memory_id.strip().lower()
            for record in self.memories.values():
                if record.active and (record.id.lower() == needle or record.short_id == needle):
                    record.active = False
                    record.updated_at = datetime.utcnow()
                    return True
            return False

    async def clear_memories(self) -> int:
        async with self._lock:
            count = 0
            for record in self.memories.values():
                if record.active:
                    record.active = False
                    count += 1
            return count

    async def prune_expired(self) -> int:
        async with self._lock:
            now = datetime.utcnow()
            pruned = 0
            for record in self.memories.values():
                if record.active and record.is_expired(now):
                    record.active = False
                    pruned += 1
            if pruned:
                logger.info("Pruned expired memories", count=pruned)
            return pruned

    async def upsert_identity_fact(self, attribute: str, value: str, confidence: float = 0.8) -> IdentityFact:
        async with self._lock:
            key = attribute.strip().lower()
            existing = self.facts.get(key)
            now = datetime.utcnow()
            if existing:
                existing.value = value
                existing.confidence = confidence
                existing.updated_at = now
                return existing

            fact = IdentityFact(attribute=key, value=value, confidence=confidence, created_at=now, updated_at=now)
            self.facts[key] = fact
            return fact

    async def identity_facts(self, limit: int) -> List[IdentityFact]:
        async with self._lock:
            facts = sorted(self.facts.values(), key=lambda f: f.confidence, reverse=True)
            return facts[:limit]

    async def store_embedding(self, memory_id: str, embedding: List[float]) -> None:
        async with self._lock:
            record = self.memories.get(memory_id)
            if record:
                record.embedding = list(embedding)

    async def record_message(self, session_id: str, role: str, text: str) -> None:
        async with self._lock:
            self.messages.append((session_id, role, text, datetime.utcnow()))

    async def temporal_context(self, query: str, max_chars: int) -> str:
        """Recent messages, only when the query refers to time"""

        lower = query.lower()
        if not any(word in lower for word in TEMPORAL_WORDS):
            return ""

        async with self._lock:
            recent = list(self.messages)[-20:]

        result = "[Recent conversation context]\n"
        for _, role, text, _ in reversed(recent):
            result += f"{role}: {text}\n"
            if len(result) >= max_chars:
                break
        return result[:max_chars]

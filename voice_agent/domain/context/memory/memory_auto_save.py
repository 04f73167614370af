from typing import List, Optional, Tuple
import time
import structlog

from voice_agent.domain.models.memory import MemoryCategory, MemoryRecord
from ..context_ranker import ContextRanker
from .embedding_cache import EmbeddingCache
from .memory_store import MemoryStore

logger = structlog.get_logger(__name__)

EXPLICIT_PREFIXES: List[Tuple[str, MemoryCategory]] = [
    ("remember that ", MemoryCategory.FACT),
    ("remember i ", MemoryCategory.FACT),
    ("remember my ", MemoryCategory.FACT),
    ("don't forget ", MemoryCategory.FACT),
    ("note that ", MemoryCategory.NOTE),
    ("save a note ", MemoryCategory.NOTE),
]

FACT_PATTERNS = [
    "my name is ", "i'm called ", "call me ",
    "i live in ", "i'm from ", "i moved to ",
    "my dog ", "my cat ", "my pet ",
    "i work at ", "i'm a ", "my job is ",
    "my birthday is ", "i was born ",
]

PREFERENCE_PATTERNS = [
    "i prefer ", "i like ", "i love ", "i hate ",
    "i don't like ", "i always ", "i never ",
    "my favorite ", "my favourite ",
]

DEBOUNCE_SECONDS = 30.0


class MemoryAutoSave:
    """Post-turn hook that extracts memories from what the user said"""

    def __init__(
        self,
        memory_store: MemoryStore,
        ranker: Optional[ContextRanker] = None,
        embedding_cache: Optional[EmbeddingCache] = None,
        debounce_seconds: float = DEBOUNCE_SECONDS
    ):
        self.memory_store = memory_store
        self.ranker = ranker or ContextRanker()
        self.embedding_cache = embedding_cache
        self.debounce_seconds = debounce_seconds
        self.last_save_time: Optional[float] = None

    def extract(self, text: str) -> List[Tuple[MemoryCategory, str, str]]:
        """(category, content, origin) candidates found in a user message"""

        original = text.strip()
        lower = original.lower()
        found = []

        for prefix, category in EXPLICIT_PREFIXES:
            if lower.startswith(prefix):
                content = original[len(prefix):].strip()
                if content:
                    found.append((category, content, "explicit"))
                break

        if any(pattern in lower for pattern in FACT_PATTERNS):
            found.append((MemoryCategory.FACT, original, "implicit"))

        if any(pattern in lower for pattern in PREFERENCE_PATTERNS):
            found.append((MemoryCategory.PREFERENCE, original, "implicit"))

        return found

    def is_debounced(self, now: Optional[float] = None) -> bool:
        if self.last_save_time is None:
            return False
        now = time.monotonic() if now is None else now
        return now - self.last_save_time < self.debounce_seconds

    async def process_message(self, text: str, role: str = "user") -> List[MemoryRecord]:
        """Save any memories found in a user message; returns what was saved"""

        if role != "user" or not text or self.is_debounced():
            return []

        saved = []
        for category, content, origin in self.extract(text):
            record = await self.save_if_not_duplicate(category, content, origin)
            if record is not None:
                saved.append(record)
        return saved

    async def save_if_not_duplicate(self, category: MemoryCategory, content: str, origin: str) -> Optional[MemoryRecord]:
        existing = await self.memory_store.query(content, 3)
        if any(self.ranker.is_duplicate(content, memory.text) for memory in existing):
            logger.debug("Skipping duplicate memory", category=category.value)
            return None

        record = await self.memory_store.add_memory(category, content, origin=origin)
        self.last_save_time = time.monotonic()
        logger.info("Auto-saved memory", category=category.value, origin=origin, memory_id=record.short_id)

        if self.embedding_cache is not None:
            try:
                vector = await self.embedding_cache.embed(content)
                await self.memory_store.store_embedding(record.id, vector)
            except Exception as e:
                logger.warning("Embedding for saved memory failed", memory_id=record.short_id, error=str(e))

        return record

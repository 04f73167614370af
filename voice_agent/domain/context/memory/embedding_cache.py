from typing import Any, Awaitable, Callable, Dict, List, Optional
from collections import OrderedDict
import asyncio
import structlog

logger = structlog.get_logger(__name__)

EmbedFunction = Callable[[str], Awaitable[List[float]]]


class EmbeddingCache:
    """LRU cache of text embeddings in front of an async embed function"""

    def __init__(self, embed_fn: EmbedFunction, max_entries: int = 512):
        self.embed_fn = embed_fn
        self.max_entries = max_entries
        self.cache: "OrderedDict[str, List[float]]" = OrderedDict()
        self.hits = 0
        self.misses = 0
        self._lock = asyncio.Lock()

    async def get(self, text: str) -> Optional[List[float]]:
        """Get a cached vector, marking it most recently used"""

        async with self._lock:
            vector = self.cache.get(text)
            if vector is not None:
                self.cache.move_to_end(text)
            return vector

    async def set(self, text: str, vector: List[float]) -> None:
        async with self._lock:
            self.cache[text] = vector
            self.cache.move_to_end(text)
            while len(self.cache) > self.max_entries:
                self.cache.popitem(last=False)

    async def embed(self, text: str) -> List[float]:
        """Cached embedding; embed function errors propagate"""

        cached = await self.get(text)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        vector = list(await self.embed_fn(text))
        await self.set(text, vector)
        return vector

    async def get_stats(self) -> Dict[str, Any]:
        async with self._lock:
            return {
                "entries": len(self.cache),
                "max_entries": self.max_entries,
                "hits": self.hits,
                "misses": self.misses,
            }

from typing import List, Optional
from pydantic import BaseModel, Field
import structlog

from voice_agent.domain.models.memory import IdentityFact, ScoredMemory
from voice_agent.infrastructure.config.settings import PipelineSettings
from .context_ranker import ContextRanker
from .memory.embedding_cache import EmbeddingCache
from .memory.memory_store import MemoryStore

logger = structlog.get_logger(__name__)


class RetrievedContext(BaseModel):
    """Identity facts and ranked memories for one query"""
    identity_facts: List[IdentityFact] = Field(default_factory=list)
    memories: List[ScoredMemory] = Field(default_factory=list)
    block: str = ""

    @property
    def contributed(self) -> bool:
        return bool(self.block)


class ContextRetriever:
    """Retrieves long-term context for a turn"""

    def __init__(
        self,
        memory_store: MemoryStore,
        settings: Optional[PipelineSettings] = None,
        ranker: Optional[ContextRanker] = None,
        embedding_cache: Optional[EmbeddingCache] = None
    ):
        self.memory_store = memory_store
        self.settings = settings or PipelineSettings()
        self.ranker = ranker or ContextRanker(self.settings.ranking)
        self.embedding_cache = embedding_cache

    async def retrieve(self, query: str, limit: Optional[int] = None) -> RetrievedContext:
        """Identity facts plus hybrid-ranked memories; never raises"""

        limit = self.settings.max_query_memories if limit is None else limit

        facts = await self._identity_facts()
        memories = await self._ranked_memories(query, limit)

        context = RetrievedContext(identity_facts=facts, memories=memories)
        context.block = self.build_block(facts, memories)

        logger.debug(
            "Retrieved context",
            identity_facts=len(facts),
            memories=len(memories),
            block_chars=len(context.block)
        )
        return context

    async def _identity_facts(self) -> List[IdentityFact]:
        try:
            facts = await self.memory_store.identity_facts(self.settings.max_identity_facts)
        except Exception as e:
            logger.warning("Identity fact lookup failed", error=str(e))
            return []
        return sorted(facts, key=lambda f: f.confidence, reverse=True)[:self.settings.max_identity_facts]

    async def _ranked_memories(self, query: str, limit: int) -> List[ScoredMemory]:
        try:
            candidates = await self.memory_store.active_memories()
        except Exception as e:
            logger.warning("Memory store unavailable", error=str(e))
            return []

        if not candidates:
            return []

        query_embedding = await self._query_embedding(query)
        try:
            ranked = self.ranker.rank(query, candidates, len(candidates), query_embedding=query_embedding)
        except Exception as e:
            logger.warning("Memory ranking failed", error=str(e), candidates=len(candidates))
            return []
        return self._suppress_duplicates(ranked)[:limit]

    async def _query_embedding(self, query: str) -> Optional[List[float]]:
        if self.embedding_cache is None:
            return None
        try:
            return await self.embedding_cache.embed(query)
        except Exception as e:
            logger.info("Query embedding unavailable, using keyword ranking", error=str(e))
            return None

    def _suppress_duplicates(self, ranked: List[ScoredMemory]) -> List[ScoredMemory]:
        kept: List[ScoredMemory] = []
        for candidate in ranked:
            if any(self.ranker.is_duplicate(candidate.text, existing.text) for existing in kept):
                continue
            kept.append(candidate)
        return kept

    def build_block(self, facts: List[IdentityFact], memories: List[ScoredMemory]) -> str:
        parts = []

        if facts:
            lines = "\n".join(f"- {fact.attribute}: {fact.value}" for fact in facts)
            parts.append(f"[IDENTITY FACTS]\n{lines}")

        if memories:
            block = "[RELEVANT MEMORIES]\n"
            char_count = 0
            for scored in memories:
                line = f"- [{scored.category.value}] {scored.text}\n"
                if char_count + len(line) > self.settings.max_query_memory_chars:
                    break
                block += line
                char_count += len(line)
            if char_count:
                parts.append(block.rstrip("\n"))

        return "\n\n".join(parts)

from datetime import datetime, timedelta, timezone
import asyncio

from voice_agent.domain.context.context_ranker import ContextRanker
from voice_agent.domain.context.context_retriever import ContextRetriever
from voice_agent.domain.context.memory.embedding_cache import EmbeddingCache
from voice_agent.domain.context.memory.memory_store import InMemoryMemoryStore
from voice_agent.domain.models.memory import MemoryCategory, MemoryRecord
from voice_agent.infrastructure.config.settings import PipelineSettings


class BrokenStore(InMemoryMemoryStore):
    async def active_memories(self):
        raise RuntimeError("database is locked")

    async def identity_facts(self, limit):
        raise RuntimeError("database is locked")


class ExplodingRanker(ContextRanker):
    def rank(self, query, memories, limit, query_embedding=None, now=None):
        raise ArithmeticError("bad weights")


async def _failing_embed(text):
    raise ConnectionError("embedding service down")


def test_identity_facts_always_included_by_confidence():
    async def scenario():
        store = InMemoryMemoryStore()
        await store.upsert_identity_fact("city", "Lisbon", confidence=0.6)
        await store.upsert_identity_fact("name", "Dana", confidence=0.95)
        retriever = ContextRetriever(store)
        return await retriever.retrieve("completely unrelated question")

    context = asyncio.run(scenario())

    assert context.block.startswith("[IDENTITY FACTS]\n- name: Dana\n- city: Lisbon")
    assert "[RELEVANT MEMORIES]" not in context.block
    assert context.contributed


def test_relevant_memories_are_listed_with_category():
    async def scenario():
        store = InMemoryMemoryStore()
        await store.add_memory(MemoryCategory.FACT, "My dog is named Rex")
        await store.add_memory(MemoryCategory.PREFERENCE, "I prefer green tea")
        retriever = ContextRetriever(store)
        return await retriever.retrieve("what is my dog's name")

    context = asyncio.run(scenario())

    assert context.memories[0].text == "My dog is named Rex"
    assert "[RELEVANT MEMORIES]\n- [fact] My dog is named Rex" in context.block


def test_near_duplicates_are_not_surfaced_twice():
    async def scenario():
        store = InMemoryMemoryStore()
        await store.add_memory(MemoryCategory.FACT, "my dog is named Rex")
        await store.add_memory(MemoryCategory.NOTE, "My dog is named Rex!")
        retriever = ContextRetriever(store)
        return await retriever.retrieve("dog named")

    context = asyncio.run(scenario())

    assert len(context.memories) == 1
    assert context.block.count("named Rex") == 1


def test_memory_section_is_capped_by_whole_lines():
    async def scenario():
        store = InMemoryMemoryStore()
        for i in range(10):
            await store.add_memory(MemoryCategory.NOTE, f"garden task number {i:02d} " + "x" * 30)
        settings = PipelineSettings(max_query_memory_chars=150)
        retriever = ContextRetriever(store, settings)
        return await retriever.retrieve("garden task")

    context = asyncio.run(scenario())

    section = context.block.split("[RELEVANT MEMORIES]\n", 1)[1]
    assert len(section) <= 150
    assert all(line.startswith("- [note] garden task number") for line in section.splitlines())


def test_store_failure_degrades_to_empty_context():
    context = asyncio.run(ContextRetriever(BrokenStore()).retrieve("anything at all"))

    assert context.block == ""
    assert context.memories == []
    assert not context.contributed


def test_embedding_failure_falls_back_to_keyword_ranking():
    async def scenario():
        store = InMemoryMemoryStore()
        await store.add_memory(MemoryCategory.FACT, "The wifi password is on the fridge")
        retriever = ContextRetriever(store, embedding_cache=EmbeddingCache(_failing_embed))
        return await retriever.retrieve("wifi password")

    context = asyncio.run(scenario())

    assert context.memories[0].text == "The wifi password is on the fridge"


def test_timezone_aware_timestamps_are_ranked():
    async def scenario():
        store = InMemoryMemoryStore()
        now = datetime.now(timezone.utc)
        await store.write(MemoryRecord(
            category=MemoryCategory.FACT,
            text="My dog's name is Rex",
            created_at=now,
            updated_at=now,
            expires_at=now + timedelta(days=30),
        ))
        return await ContextRetriever(store).retrieve("dog name")

    context = asyncio.run(scenario())

    assert [m.text for m in context.memories] == ["My dog's name is Rex"]


def test_ranking_failure_keeps_identity_facts():
    async def scenario():
        store = InMemoryMemoryStore()
        await store.upsert_identity_fact("name", "Dana")
        await store.add_memory(MemoryCategory.FACT, "My dog is named Rex")
        return await ContextRetriever(store, ranker=ExplodingRanker()).retrieve("dog")

    context = asyncio.run(scenario())

    assert context.memories == []
    assert context.block == "[IDENTITY FACTS]\n- name: Dana"

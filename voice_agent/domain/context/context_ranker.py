from typing import List, Optional, Sequence
from datetime import datetime
import math
import re

from voice_agent.domain.models.memory import MemoryRecord, ScoredMemory, to_naive_utc
from voice_agent.infrastructure.config.settings import RankingWeights

_TOKEN = re.compile(r"[^\W_]+")


def tokenize(text: str) -> List[str]:
    """Lowercase alphanumeric runs longer than one character"""
    return [t for t in _TOKEN.findall(text.lower()) if len(t) > 1]


def jaccard_similarity(a: str, b: str) -> float:
    tokens_a = set(tokenize(a))
    tokens_b = set(tokenize(b))
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b) or not a:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class ContextRanker:
    """Hybrid keyword + semantic + recency ranking of memories"""

    def __init__(self, weights: Optional[RankingWeights] = None):
        self.weights = weights or RankingWeights()

    def keyword_score(self, query_tokens: List[str], doc_tokens: List[str]) -> float:
        """Simplified BM25 with uniform idf, normalized by query length"""

        if not query_tokens:
            return 0.0

        k1 = self.weights.bm25_k1
        b = self.weights.bm25_b
        doc_len = len(doc_tokens)

        term_freq = {}
        for token in doc_tokens:
            term_freq[token] = term_freq.get(token, 0) + 1

        score = 0.0
        for token in set(query_tokens):
            tf = term_freq.get(token, 0)
            if tf == 0:
                continue
            denominator = tf + k1 * (1 - b + b * doc_len / self.weights.avg_doc_len)
            score += tf / denominator

        return min(score / len(query_tokens), 1.0)

    @staticmethod
    def token_overlap(query_tokens: List[str], doc_tokens: List[str]) -> float:
        query_set = set(query_tokens)
        if not query_set:
            return 0.0
        return len(query_set & set(doc_tokens)) / len(query_set)

    def semantic_score(
        self,
        query_tokens: List[str],
        doc_tokens: List[str],
        query_embedding: Optional[Sequence[float]],
        doc_embedding: Optional[Sequence[float]]
    ) -> float:
        if query_embedding and doc_embedding and len(query_embedding) == len(doc_embedding):
            return cosine_similarity(query_embedding, doc_embedding)
        return self.token_overlap(query_tokens, doc_tokens)

    def recency_score(self, updated_at: datetime, now: datetime) -> float:
        age = to_naive_utc(now) - to_naive_utc(updated_at)
        age_days = max(age.total_seconds(), 0.0) / 86400
        return math.exp(-math.log(2) * age_days / self.weights.half_life_days)

    def score_memory(
        self,
        query_tokens: List[str],
        memory: MemoryRecord,
        now: datetime,
        query_embedding: Optional[Sequence[float]] = None
    ) -> ScoredMemory:
        doc_tokens = tokenize(memory.text)
        keyword = self.keyword_score(query_tokens, doc_tokens)
        semantic = self.semantic_score(query_tokens, doc_tokens, query_embedding, memory.embedding)
        recency = self.recency_score(memory.updated_at, now)

        combined = (
            self.weights.keyword * keyword
            + self.weights.semantic * semantic
            + self.weights.recency * recency
        )

        return ScoredMemory(
            memory=memory,
            score=combined,
            keyword_score=keyword,
            semantic_score=semantic,
            recency_score=recency
        )

    def rank(
        self,
        query: str,
        memories: List[MemoryRecord],
        limit: int,
        query_embedding: Optional[Sequence[float]] = None,
        now: Optional[datetime] = None
    ) -> List[ScoredMemory]:
        """Score, filter, sort and truncate candidate memories"""

        query_tokens = tokenize(query)
        if not query_tokens or limit <= 0:
            return []

        now = now or datetime.utcnow()
        scored = [
            self.score_memory(query_tokens, memory, now, query_embedding)
            for memory in memories
        ]
        kept = [s for s in scored if s.score > self.weights.min_score]
        kept.sort(key=lambda s: s.score, reverse=True)
        return kept[:limit]

    def is_duplicate(self, a: str, b: str) -> bool:
        """Jaccard similarity of token sets at or above the duplicate threshold"""
        return jaccard_similarity(a, b) >= self.weights.duplicate_jaccard

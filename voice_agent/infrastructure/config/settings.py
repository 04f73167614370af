from typing import Dict, List, Optional
from pydantic import BaseModel, Field
import os


class PromptBudget(BaseModel):
    """Character caps for the instruction payload"""
    total: int = Field(default=32_000, description="Hard cap for the whole payload")
    context: int = 6_000
    analysis: int = 4_000
    current_state: int = 500
    conversation_history: int = 10_000
    temporal: int = 2_000


class RankingWeights(BaseModel):
    """Hybrid ranking constants"""
    keyword: float = 0.4
    semantic: float = 0.4
    recency: float = 0.2
    half_life_days: float = 30.0
    min_score: float = 0.01
    duplicate_jaccard: float = 0.80
    bm25_k1: float = 1.2
    bm25_b: float = 0.75
    avg_doc_len: float = 20.0


class PipelineSettings(BaseModel):
    """Settings for the turn pipeline"""
    user_name: Optional[str] = None
    prompt_budget: PromptBudget = Field(default_factory=PromptBudget)
    ranking: RankingWeights = Field(default_factory=RankingWeights)

    # Retrieval
    max_identity_facts: int = 8
    max_query_memories: int = 12
    max_query_memory_chars: int = 2_000
    max_temporal_chars: int = 3_000

    # Analysis
    max_concurrent_producers: int = 3
    producer_timeout_seconds: float = 10.0
    disabled_producers: List[str] = Field(default_factory=list)

    # Tools
    tool_timeout_seconds: float = 30.0

    # History windows
    model_history_messages: int = 20
    prompt_history_messages: int = 10
    recent_response_count: int = 5

    @classmethod
    def from_env(cls, prefix: str = "VOICE_AGENT_") -> "PipelineSettings":
        """Build settings, overriding defaults from environment variables"""

        settings = cls()

        user_name = os.getenv(f"{prefix}USER_NAME")
        if user_name:
            settings.user_name = user_name

        total_budget = os.getenv(f"{prefix}PROMPT_BUDGET")
        if total_budget:
            settings.prompt_budget.total = int(total_budget)

        max_concurrent = os.getenv(f"{prefix}MAX_CONCURRENT_PRODUCERS")
        if max_concurrent:
            settings.max_concurrent_producers = int(max_concurrent)

        timeout = os.getenv(f"{prefix}PRODUCER_TIMEOUT")
        if timeout:
            settings.producer_timeout_seconds = float(timeout)

        disabled = os.getenv(f"{prefix}DISABLED_PRODUCERS")
        if disabled:
            settings.disabled_producers = [
                name.strip() for name in disabled.split(",") if name.strip()
            ]

        return settings


class FeatureFlags:
    """Enablement lookup for analysis producers"""

    def __init__(self, disabled: Optional[List[str]] = None, overrides: Optional[Dict[str, bool]] = None):
        self.disabled = set(disabled or [])
        self.overrides: Dict[str, bool] = dict(overrides or {})

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> "FeatureFlags":
        return cls(disabled=settings.disabled_producers)

    def set_enabled(self, name: str, enabled: bool):
        self.overrides[name] = enabled

    def is_enabled(self, name: str) -> bool:
        if name in self.overrides:
            return self.overrides[name]
        return name not in self.disabled

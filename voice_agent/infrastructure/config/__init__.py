from .settings import FeatureFlags, PipelineSettings, PromptBudget, RankingWeights

__all__ = [
    "FeatureFlags",
    "PipelineSettings",
    "PromptBudget",
    "RankingWeights",
]

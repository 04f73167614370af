from typing import List

from voice_agent.domain.models.turn_state import TurnContext
from ..base_producer import AnalysisProducer, contains_any

KNOWLEDGE_BOUNDARY_CUES = [
    "latest", "newest", "current", "right now", "today's", "this week", "breaking news"
]
FACTUAL_CUES = [
    "exactly", "precise", "specific number", "how many", "what percentage", "statistics", "data shows"
]
DOUBT_CUES = [
    "are you sure", "is that right", "that doesn't sound right", "i don't think so",
    "that's wrong", "incorrect"
]
DOMAIN_KEYWORDS = {
    "tech": ["code", "software", "api", "database", "programming"],
    "health": ["health", "medical", "exercise", "diet", "sleep"],
    "finance": ["money", "invest", "budget", "price", "cost"],
    "science": ["physics", "chemistry", "biology", "research"],
    "creative": ["art", "music", "write", "design", "creative"],
}


def detect_domains(lower: str) -> List[str]:
    return [domain for domain, words in DOMAIN_KEYWORDS.items() if contains_any(lower, words)]


class MetaCognitionProducer(AnalysisProducer):
    """Flags where the answer may be uncertain"""

    name = "metacognition"
    description = "Confidence evaluation and knowledge boundaries"

    async def analyze(self, context: TurnContext) -> str:
        lower = context.user_text.strip().lower()
        if not lower:
            return ""

        insights = []
        if contains_any(lower, KNOWLEDGE_BOUNDARY_CUES):
            insights.append("Query may involve real-time data: acknowledge uncertainty, suggest tools")
        if contains_any(lower, FACTUAL_CUES):
            insights.append("Factual precision requested: flag approximations")

        domains = detect_domains(lower)
        if len(domains) >= 3:
            insights.append(f"Multi-domain query ({', '.join(domains)}): synthesize across areas")

        if contains_any(lower, DOUBT_CUES):
            insights.append("User questioning accuracy: re-evaluate the previous response honestly")

        if not insights:
            return ""
        return "[METACOGNITION]\n" + "\n".join(insights)

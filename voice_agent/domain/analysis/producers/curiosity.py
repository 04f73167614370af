from typing import List
import string

from voice_agent.domain.models.turn_state import TurnContext
from ..base_producer import AnalysisProducer, contains_any

UNCERTAINTY_CUES = ["i think", "maybe", "probably", "not sure", "i wonder"]
FOLLOW_UP_CUES = ["tell me more", "what about", "and also", "another thing"]
STOP_WORDS = {
    "about", "after", "again", "being", "between", "could", "every", "first", "found",
    "going", "house", "large", "never", "other", "place", "right", "since", "small",
    "still", "their", "there", "these", "thing", "those", "through", "under", "using",
    "where", "which", "while", "would", "should", "really", "think", "maybe"
}
MAX_RECENT_TOPICS = 20


def extract_topics(text: str) -> List[str]:
    words = (w.strip(string.punctuation).lower() for w in text.split())
    return [w for w in words if len(w) > 4 and w not in STOP_WORDS]


class CuriosityProducer(AnalysisProducer):
    """Spots uncertainty, follow-ups and newly introduced topics"""

    name = "curiosity"
    description = "Knowledge gap detection and follow-up suggestions"

    def __init__(self):
        super().__init__()
        self.recent_topics: List[str] = []

    async def analyze(self, context: TurnContext) -> str:
        text = context.user_text.strip()
        if not text:
            return ""
        lower = text.lower()

        insights = []
        if contains_any(lower, UNCERTAINTY_CUES):
            insights.append("User expressing uncertainty: offer to help clarify")

        new_topics = []
        for topic in extract_topics(text):
            if topic not in self.recent_topics and topic not in new_topics:
                new_topics.append(topic)
        if new_topics and self.recent_topics:
            insights.append(f"New topics introduced: {', '.join(new_topics[:5])}")
        self.recent_topics.extend(new_topics)
        del self.recent_topics[:-MAX_RECENT_TOPICS]

        if contains_any(lower, FOLLOW_UP_CUES):
            insights.append("User showing curiosity: give a thorough, engaging response")

        if not insights:
            return ""
        return "[CURIOSITY]\n" + "\n".join(insights)

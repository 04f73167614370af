import re

from voice_agent.domain.models.turn_state import TurnContext
from ..base_producer import AnalysisProducer, contains_any

TECHNICAL_TERMS = [
    "api", "database", "algorithm", "protocol", "async", "concurrency", "framework",
    "architecture", "deployment", "refactor", "endpoint", "middleware", "cache",
    "latency", "throughput", "schema", "migration", "dependency", "injection",
    "singleton", "thread", "mutex"
]
EXPLANATION_CUES = ["what is", "explain", "how does"]
PERSONAL_CUES = [
    "my name", "my dog", "my cat", "my pet", "my job", "my wife", "my husband",
    "my partner", "remember", "do you know", "what's my", "where do i"
]
FRUSTRATION_CUES = [
    "doesn't work", "broken", "keeps failing", "still not", "tried everything",
    "frustrated", "annoying", "ugh"
]
URGENCY_CUES = ["urgent", "asap", "right now", "immediately", "hurry", "quick"]
EMOTION_CUES = [
    "feel", "happy", "sad", "worried", "excited", "nervous", "love", "miss",
    "lonely", "grateful", "tired", "stressed"
]
GREETING = re.compile(
    r"^(hi|hey|hello|howdy|good (morning|afternoon|evening))\b|what's up|how are you|how's it going"
)


class TheoryOfMindProducer(AnalysisProducer):
    """Models the user's knowledge level and emotional state"""

    name = "theory_of_mind"
    description = "User mental model tracking"

    async def analyze(self, context: TurnContext) -> str:
        lower = context.user_text.strip().lower()
        if not lower:
            return ""

        insights = []

        technical = sum(1 for term in TECHNICAL_TERMS if term in lower)
        if technical > 3:
            insights.append("User demonstrates technical expertise: match their level")
        elif contains_any(lower, EXPLANATION_CUES):
            insights.append("User seeking understanding: give clear explanations")

        if contains_any(lower, PERSONAL_CUES):
            insights.append("Personal question: answer directly and warmly from memories")
        if contains_any(lower, FRUSTRATION_CUES):
            insights.append("User may be frustrated: be empathetic and solution-focused")
        if contains_any(lower, URGENCY_CUES):
            insights.append("Urgency detected: be concise and action-oriented")
        if contains_any(lower, EMOTION_CUES):
            insights.append("Emotional context: acknowledge feelings before problem-solving")
        if GREETING.search(lower):
            insights.append("Social greeting: be warm and personal")

        if not insights:
            return ""
        return "[THEORY OF MIND]\n" + "\n".join(insights)

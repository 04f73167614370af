from typing import List

from voice_agent.domain.models.turn_state import TurnContext
from ..base_producer import AnalysisProducer, contains_any

COMMITMENT_PHRASES = ["i'll", "i will", "let me"]
CALLBACK_CUES = [
    "earlier", "before", "you said", "you mentioned", "remember when", "going back to", "as i said"
]
CONTINUATION_CUES = ["also", "another thing", "and what about", "speaking of"]
MAX_COMMITMENTS = 10


def extract_commitment(text: str) -> str:
    """First sentence of the assistant's reply that promises something"""

    for sentence in text.split("."):
        if contains_any(sentence.lower(), COMMITMENT_PHRASES):
            return sentence.strip()
    return ""


class NarrativeProducer(AnalysisProducer):
    """Keeps the conversation consistent with earlier turns"""

    name = "narrative"
    description = "Conversation continuity and open commitments"

    def __init__(self):
        super().__init__()
        self.commitments: List[str] = []

    async def analyze(self, context: TurnContext) -> str:
        commitment = extract_commitment(context.assistant_text)
        if commitment and commitment not in self.commitments:
            self.commitments.append(commitment)
            del self.commitments[:-MAX_COMMITMENTS]

        lower = context.user_text.strip().lower()
        if not lower:
            return ""

        insights = []
        if contains_any(lower, CALLBACK_CUES):
            insights.append("User referencing earlier context: maintain narrative continuity")
            if self.commitments:
                insights.append("Open commitments: " + "; ".join(self.commitments[-3:]))
        if contains_any(lower, CONTINUATION_CUES):
            insights.append("Topic continuation: link back to the previous discussion")

        if not insights:
            return ""
        return "[NARRATIVE]\n" + "\n".join(insights)

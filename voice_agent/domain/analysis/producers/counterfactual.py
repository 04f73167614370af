from voice_agent.domain.models.turn_state import TurnContext
from ..base_producer import AnalysisProducer, contains_any

DECISION_CUES = [
    "should i", "what should", "is it better", "pros and cons",
    "advantages", "disadvantages", "trade-off", "tradeoff"
]
REGRET_CUES = ["should have", "could have", "wish i had", "if only", "mistake"]
HYPOTHETICAL_CUES = ["what if", "what would happen", "imagine if", "suppose"]


class CounterfactualProducer(AnalysisProducer):
    """What-if branching for decisions and hypotheticals"""

    name = "counterfactual"
    description = "Alternative perspectives for decisions and hypotheticals"

    async def analyze(self, context: TurnContext) -> str:
        lower = context.user_text.strip().lower()
        if not lower:
            return ""

        insights = []
        if contains_any(lower, DECISION_CUES):
            insights.append("Decision context: explore the outcome of each option")
        if contains_any(lower, REGRET_CUES):
            insights.append("Regret pattern: gently reframe toward future possibilities")
        if contains_any(lower, HYPOTHETICAL_CUES):
            insights.append("Explicit hypothetical: engage fully with the thought experiment")

        if not insights:
            return ""
        return "[COUNTERFACTUAL]\n" + "\n".join(insights)

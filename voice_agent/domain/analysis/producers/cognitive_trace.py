from voice_agent.domain.models.turn_state import TurnContext
from ..base_producer import AnalysisProducer, contains_any

COMPARATIVE_CUES = ["better", "worse", "compared to", "versus", " vs ", "or should", "which is"]
CAUSAL_CUES = ["why", "because", "cause", "reason", "how come", "what led to"]
HYPOTHETICAL_CUES = ["what if", "hypothetically", "imagine", "suppose", "would it"]
PLANNING_CUES = ["how to", "steps to", "plan for", "what order", "sequence"]
MEMORY_CUES = [
    "what is my", "what's my", "do you remember", "do you know my",
    "tell me about my", "who is my", "where do i", "when did i"
]


class CognitiveTraceProducer(AnalysisProducer):
    """Flags the kind of reasoning a query needs"""

    name = "cognitive_trace"
    description = "Multi-stage reasoning cues for the current query"

    async def analyze(self, context: TurnContext) -> str:
        text = context.user_text.strip()
        if not text:
            return ""
        lower = text.lower()

        traces = []

        question_marks = text.count("?")
        if question_marks > 1:
            traces.append(f"Multi-part question detected ({question_marks} parts): address each part")

        if contains_any(f" {lower} ", COMPARATIVE_CUES):
            traces.append("Comparative reasoning needed: weigh pros and cons")
        if contains_any(lower, CAUSAL_CUES):
            traces.append("Causal reasoning: trace the cause-effect chain")
        if contains_any(lower, HYPOTHETICAL_CUES):
            traces.append("Hypothetical scenario: explore possibilities")
        if contains_any(lower, PLANNING_CUES):
            traces.append("Sequential planning: break into ordered steps")
        if contains_any(lower, MEMORY_CUES):
            traces.append("Memory recall query: answer confidently from the injected memory context")

        if lower.endswith("?") and not traces:
            traces.append("Direct question: answer concisely with TALK")

        if not traces:
            return ""
        return "[COGNITIVE TRACE]\n" + "\n".join(traces)

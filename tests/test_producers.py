import asyncio

from voice_agent.domain.analysis.producers import (
    CognitiveTraceProducer,
    CuriosityProducer,
    NarrativeProducer,
    TheoryOfMindProducer,
    default_producers,
)
from voice_agent.domain.models.turn_state import TurnContext


def _run(producer, text, assistant_text=""):
    return asyncio.run(producer.run(TurnContext(user_text=text, assistant_text=assistant_text)))


def test_cognitive_trace_detects_multi_part_questions():
    output = _run(CognitiveTraceProducer(), "What is A? And what about B?")

    assert output.startswith("[COGNITIVE TRACE]")
    assert "Multi-part question detected (2 parts)" in output


def test_cognitive_trace_is_silent_for_greetings():
    assert _run(CognitiveTraceProducer(), "Hello") == ""


def test_cognitive_trace_flags_memory_recall_and_plain_questions():
    producer = CognitiveTraceProducer()

    assert "Memory recall query" in _run(producer, "Do you remember my sister's birthday")
    assert "Direct question" in _run(producer, "Is it raining?")


def test_curiosity_reports_new_topics_after_first_turn():
    producer = CuriosityProducer()

    _run(producer, "Let's talk about gardening tomatoes")
    output = _run(producer, "Now tell me more about astronomy")

    assert "New topics introduced: astronomy" in output
    assert "User showing curiosity" in output
    assert "tomatoes" in producer.recent_topics


def test_narrative_recalls_open_commitments():
    producer = NarrativeProducer()

    output = _run(
        producer,
        "You mentioned something earlier",
        assistant_text="Sure. I'll remind you about the dentist tomorrow. Anything else",
    )

    assert "maintain narrative continuity" in output
    assert "Open commitments: I'll remind you about the dentist tomorrow" in output


def test_theory_of_mind_greeting_uses_word_boundaries():
    producer = TheoryOfMindProducer()

    assert "Social greeting" in _run(producer, "hey there")
    assert "Social greeting" not in _run(producer, "this thing is broken")


def test_default_producers_have_unique_names():
    names = [p.name for p in default_producers()]

    assert names == [
        "cognitive_trace", "metacognition", "curiosity",
        "counterfactual", "theory_of_mind", "narrative",
    ]

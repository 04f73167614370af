from typing import List

from ..base_producer import AnalysisProducer
from .cognitive_trace import CognitiveTraceProducer
from .counterfactual import CounterfactualProducer
from .curiosity import CuriosityProducer
from .metacognition import MetaCognitionProducer
from .narrative import NarrativeProducer
from .theory_of_mind import TheoryOfMindProducer


def default_producers() -> List[AnalysisProducer]:
    """Fresh instances of every built-in producer"""
    return [
        CognitiveTraceProducer(),
        MetaCognitionProducer(),
        CuriosityProducer(),
        CounterfactualProducer(),
        TheoryOfMindProducer(),
        NarrativeProducer(),
    ]


__all__ = [
    "CognitiveTraceProducer",
    "CounterfactualProducer",
    "CuriosityProducer",
    "MetaCognitionProducer",
    "NarrativeProducer",
    "TheoryOfMindProducer",
    "default_producers",
]

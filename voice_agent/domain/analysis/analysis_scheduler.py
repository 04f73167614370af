from typing import Dict, List, Optional
import asyncio
import time
import structlog

from voice_agent.domain.models.turn_state import (
    AnalysisRunResult, AnalysisTaskResult, AnalysisTaskStatus, TurnContext
)
from voice_agent.infrastructure.config.settings import FeatureFlags
from voice_agent.infrastructure.observability.logging import agent_logger, metrics
from .base_producer import AnalysisProducer

logger = structlog.get_logger(__name__)


class AnalysisScheduler:
    """Runs enabled analysis producers in bounded concurrent batches"""

    def __init__(
        self,
        flags: Optional[FeatureFlags] = None,
        max_concurrent: int = 3,
        timeout_seconds: float = 10.0
    ):
        self.flags = flags or FeatureFlags()
        self.max_concurrent = max(1, max_concurrent)
        self.timeout_seconds = timeout_seconds
        self.producers: Dict[str, AnalysisProducer] = {}

    def register_producer(self, producer: AnalysisProducer):
        """Register a producer; registration order is run order"""

        self.producers[producer.name] = producer

    def register_producers(self, producers: List[AnalysisProducer]):
        for producer in producers:
            self.register_producer(producer)

    def is_enabled(self, producer: AnalysisProducer) -> bool:
        return self.flags.is_enabled(producer.name) and self.flags.is_enabled(producer.flag_key)

    async def run(self, context: TurnContext) -> AnalysisRunResult:
        """Run all producers for one turn; never raises"""

        results: List[AnalysisTaskResult] = []
        enabled: List[AnalysisProducer] = []

        for producer in self.producers.values():
            if self.is_enabled(producer):
                enabled.append(producer)
            else:
                results.append(AnalysisTaskResult(name=producer.name, status=AnalysisTaskStatus.DISABLED))

        start = time.monotonic()
        for i in range(0, len(enabled), self.max_concurrent):
            batch = enabled[i:i + self.max_concurrent]
            results.extend(await asyncio.gather(*(self._run_one(p, context) for p in batch)))

        metrics.record_latency("analysis_run", (time.monotonic() - start) * 1000)

        outputs = [r.output for r in results if r.status == AnalysisTaskStatus.SUCCESS]
        context_block = "[ANALYSIS CONTEXT]\n" + "\n".join(outputs) if outputs else ""

        run_result = AnalysisRunResult(results=results, context_block=context_block)
        logger.debug("Analysis complete", summary=run_result.summary)
        return run_result

    async def _run_one(self, producer: AnalysisProducer, context: TurnContext) -> AnalysisTaskResult:
        start = time.monotonic()
        output = ""

        try:
            output = await asyncio.wait_for(producer.run(context), timeout=self.timeout_seconds)
            output = (output or "").strip()
            status = AnalysisTaskStatus.SUCCESS if output else AnalysisTaskStatus.EMPTY
        except asyncio.TimeoutError:
            status = AnalysisTaskStatus.TIMEOUT
            logger.warning("Analysis producer timed out", producer=producer.name, timeout=self.timeout_seconds)
        except Exception as e:
            status = AnalysisTaskStatus.ERROR
            output = ""
            logger.warning("Analysis producer failed", producer=producer.name, error=str(e))

        duration_ms = int((time.monotonic() - start) * 1000)
        agent_logger.log_analysis_task(producer.name, status.value, duration_ms, len(output))

        return AnalysisTaskResult(
            name=producer.name,
            output=output if status == AnalysisTaskStatus.SUCCESS else "",
            duration_ms=duration_ms,
            status=status
        )

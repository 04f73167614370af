import asyncio
import time

from voice_agent.domain.analysis.analysis_scheduler import AnalysisScheduler
from voice_agent.domain.analysis.base_producer import AnalysisProducer
from voice_agent.domain.models.turn_state import AnalysisTaskStatus, TurnContext
from voice_agent.infrastructure.config.settings import FeatureFlags


class StaticProducer(AnalysisProducer):
    def __init__(self, name, output="", delay=0.0, error=None):
        super().__init__()
        self.name = name
        self.output = output
        self.delay = delay
        self.error = error
        self.calls = 0

    async def analyze(self, context):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.output


def _context(text="Hello"):
    return TurnContext(user_text=text, session_id="s1")


def test_hanging_producer_times_out_within_batch_bound():
    producers = [StaticProducer(f"p{i}", output=f"[P{i}]") for i in range(4)]
    producers.insert(2, StaticProducer("hangs", delay=5.0))
    scheduler = AnalysisScheduler(max_concurrent=2, timeout_seconds=0.1)
    scheduler.register_producers(producers)

    start = time.monotonic()
    result = asyncio.run(scheduler.run(_context()))
    elapsed = time.monotonic() - start

    timeouts = result.by_status(AnalysisTaskStatus.TIMEOUT)
    assert [r.name for r in timeouts] == ["hangs"]
    assert len(result.by_status(AnalysisTaskStatus.SUCCESS)) == 4
    assert elapsed < 3 * 0.1 + 0.2


def test_disabled_producers_are_never_invoked():
    enabled = StaticProducer("enabled", output="[ON]")
    disabled = StaticProducer("disabled", output="[OFF]")
    scheduler = AnalysisScheduler(flags=FeatureFlags(disabled=["disabled"]))
    scheduler.register_producers([enabled, disabled])

    result = asyncio.run(scheduler.run(_context()))

    assert disabled.calls == 0
    assert result.by_status(AnalysisTaskStatus.DISABLED)[0].name == "disabled"
    assert "[OFF]" not in result.context_block


def test_flag_override_can_disable_by_flag_key():
    producer = StaticProducer("trace", output="[TRACE]")
    flags = FeatureFlags()
    flags.set_enabled(producer.flag_key, False)
    scheduler = AnalysisScheduler(flags=flags)
    scheduler.register_producer(producer)

    result = asyncio.run(scheduler.run(_context()))

    assert producer.calls == 0
    assert result.context_block == ""


def test_errors_and_empty_outputs_are_excluded():
    scheduler = AnalysisScheduler()
    scheduler.register_producers([
        StaticProducer("good", output="[GOOD]\nline"),
        StaticProducer("quiet", output="   "),
        StaticProducer("broken", error=ValueError("boom")),
    ])

    result = asyncio.run(scheduler.run(_context()))

    statuses = {r.name: r.status for r in result.results}
    assert statuses == {
        "good": AnalysisTaskStatus.SUCCESS,
        "quiet": AnalysisTaskStatus.EMPTY,
        "broken": AnalysisTaskStatus.ERROR,
    }
    assert result.context_block == "[ANALYSIS CONTEXT]\n[GOOD]\nline"
    assert result.active_names == ["good"]


def test_context_block_empty_when_nothing_succeeds():
    scheduler = AnalysisScheduler()
    scheduler.register_producer(StaticProducer("quiet"))

    result = asyncio.run(scheduler.run(_context()))

    assert result.context_block == ""


def test_summary_groups_producers_by_status():
    scheduler = AnalysisScheduler(flags=FeatureFlags(disabled=["off"]), timeout_seconds=0.05)
    scheduler.register_producers([
        StaticProducer("a", output="[A]"),
        StaticProducer("idle"),
        StaticProducer("slow", delay=1.0),
        StaticProducer("off", output="[X]"),
    ])

    summary = asyncio.run(scheduler.run(_context())).summary

    assert summary.startswith("active: a(")
    assert "idle: idle(" in summary
    assert "failed: slow(timeout" in summary
    assert summary.endswith("disabled: off")

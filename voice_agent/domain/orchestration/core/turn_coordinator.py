from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, TypedDict
from collections import defaultdict
from contextlib import asynccontextmanager
from langgraph.graph import StateGraph, END
import asyncio
import time
import structlog

from voice_agent.domain.analysis.analysis_scheduler import AnalysisScheduler
from voice_agent.domain.analysis.producers import default_producers
from voice_agent.domain.context.context_ranker import ContextRanker
from voice_agent.domain.context.context_retriever import ContextRetriever, RetrievedContext
from voice_agent.domain.context.memory.embedding_cache import EmbeddingCache
from voice_agent.domain.context.memory.memory_auto_save import MemoryAutoSave
from voice_agent.domain.context.memory.memory_store import MemoryStore
from voice_agent.domain.context.state.state_manager import SessionStateManager
from voice_agent.domain.interpretation.response_interpreter import ResponseInterpreter
from voice_agent.domain.models.errors import ModelCallError
from voice_agent.domain.models.plan import Plan
from voice_agent.domain.models.turn_state import (
    AnalysisRunResult, ChatMessage, MessageRole, TurnContext, TurnResult
)
from voice_agent.domain.orchestration.plan_executor import PlanExecutionResult, PlanExecutor
from voice_agent.domain.prompt.prompt_assembler import PromptAssembler
from voice_agent.domain.tool.tool_executor import ToolExecutor
from voice_agent.domain.tool.tool_registry import ToolRegistry
from voice_agent.infrastructure.config.settings import FeatureFlags, PipelineSettings
from voice_agent.infrastructure.llm.model_client import ModelClient, ModelResponse
from voice_agent.infrastructure.observability.logging import agent_logger, metrics

logger = structlog.get_logger(__name__)

JSON_RESPONSE_FORMAT = {"type": "json_object"}

PostTurnHook = Callable[[str, TurnResult, str], Awaitable[None]]


class TurnState(TypedDict, total=False):
    """State carried through the turn graph"""
    user_text: str
    history: List[ChatMessage]
    session_id: str
    turn_context: TurnContext
    retrieved: RetrievedContext
    analysis: AnalysisRunResult
    current_state: str
    temporal_context: str
    system_text: str
    response: ModelResponse
    plan: Plan
    execution: PlanExecutionResult


class TurnCoordinator:
    """Runs one user utterance through retrieval, analysis, the model and the plan"""

    def __init__(
        self,
        model_client: ModelClient,
        memory_store: MemoryStore,
        settings: Optional[PipelineSettings] = None,
        registry: Optional[ToolRegistry] = None,
        scheduler: Optional[AnalysisScheduler] = None,
        embedding_cache: Optional[EmbeddingCache] = None,
        state_manager: Optional[SessionStateManager] = None,
        post_turn_hooks: Optional[List[PostTurnHook]] = None
    ):
        self.model_client = model_client
        self.memory_store = memory_store
        self.settings = settings or PipelineSettings()

        ranker = ContextRanker(self.settings.ranking)
        self.retriever = ContextRetriever(memory_store, self.settings, ranker, embedding_cache)

        if registry is None:
            registry = ToolRegistry(ToolExecutor(self.settings.tool_timeout_seconds))
            registry.register_defaults(memory_store)
        self.registry = registry

        if scheduler is None:
            scheduler = AnalysisScheduler(
                FeatureFlags.from_settings(self.settings),
                max_concurrent=self.settings.max_concurrent_producers,
                timeout_seconds=self.settings.producer_timeout_seconds
            )
            scheduler.register_producers(default_producers())
        self.scheduler = scheduler

        self.assembler = PromptAssembler(self.settings)
        self.interpreter = ResponseInterpreter()
        self.executor = PlanExecutor(self.registry)
        self.state_manager = state_manager or SessionStateManager()
        self.auto_save = MemoryAutoSave(memory_store, ranker, embedding_cache)

        self.post_turn_hooks: List[PostTurnHook] = [self._auto_save_hook, self._record_messages_hook]
        self.post_turn_hooks.extend(post_turn_hooks or [])

        self._session_locks: Dict[str, asyncio.Lock] = {}
        self._session_lock_users: Dict[str, int] = defaultdict(int)
        self._background_tasks: Set[asyncio.Task] = set()
        self.workflow = self._create_workflow()

    def _create_workflow(self):
        """Create the turn graph"""

        workflow = StateGraph(TurnState)

        workflow.add_node("gather_context", self.gather_context_node)
        workflow.add_node("assemble_prompt", self.assemble_prompt_node)
        workflow.add_node("call_model", self.call_model_node)
        workflow.add_node("interpret_response", self.interpret_response_node)
        workflow.add_node("execute_plan", self.execute_plan_node)

        workflow.set_entry_point("gather_context")
        workflow.add_edge("gather_context", "assemble_prompt")
        workflow.add_edge("assemble_prompt", "call_model")
        workflow.add_edge("call_model", "interpret_response")
        workflow.add_edge("interpret_response", "execute_plan")
        workflow.add_edge("execute_plan", END)

        return workflow.compile()

    async def gather_context_node(self, state: TurnState) -> Dict[str, Any]:
        """Retrieval and analysis run concurrently"""

        text = state["user_text"]
        retrieved, analysis, temporal, current_state = await asyncio.gather(
            self.retriever.retrieve(text),
            self.scheduler.run(state["turn_context"]),
            self._temporal_context(text),
            self.state_manager.build_current_state(state["session_id"])
        )
        return {
            "retrieved": retrieved,
            "analysis": analysis,
            "temporal_context": temporal,
            "current_state": current_state
        }

    async def assemble_prompt_node(self, state: TurnState) -> Dict[str, Any]:
        history = state["history"]
        history_text = "\n".join(
            f"{message.role.value}: {message.text}"
            for message in history[-self.settings.prompt_history_messages:]
        )
        recent_responses = [
            message.text for message in history if message.role == MessageRole.ASSISTANT
        ][-self.settings.recent_response_count:]

        system_text = self.assembler.assemble(
            context_block=state["retrieved"].block,
            analysis_block=state["analysis"].context_block,
            tool_manifest=self.registry.build_tool_manifest(),
            history_text=history_text,
            current_state=state["current_state"],
            temporal_context=state["temporal_context"],
            recent_responses=recent_responses
        )
        return {"system_text": system_text}

    async def call_model_node(self, state: TurnState) -> Dict[str, Any]:
        """The only step allowed to fail the turn"""

        messages = list(state["history"][-self.settings.model_history_messages:])
        messages.append(ChatMessage(role=MessageRole.USER, text=state["user_text"]))

        response = await self.model_client.complete(
            state["system_text"],
            messages,
            response_format=JSON_RESPONSE_FORMAT,
            tool_definitions=self.registry.build_tool_definitions() or None
        )
        metrics.record_latency("model_call", response.latency_ms, tags={"model": response.model})
        return {"response": response}

    async def interpret_response_node(self, state: TurnState) -> Dict[str, Any]:
        response = state["response"]
        return {"plan": self.interpreter.from_model_response(response.text, response.tool_calls)}

    async def execute_plan_node(self, state: TurnState) -> Dict[str, Any]:
        return {"execution": await self.executor.execute(state["plan"])}

    async def process_turn(
        self,
        text: str,
        history: Optional[List[ChatMessage]] = None,
        session_id: str = "default"
    ) -> TurnResult:
        """Process one user utterance; only a model failure raises"""

        history = list(history or [])
        assistant_text = next(
            (m.text for m in reversed(history) if m.role == MessageRole.ASSISTANT), ""
        )
        turn_context = TurnContext(user_text=text, assistant_text=assistant_text, session_id=session_id)

        async with self._session_lock(session_id):
            with structlog.contextvars.bound_contextvars(turn_id=turn_context.turn_id, session_id=session_id):
                start = time.monotonic()
                await self.state_manager.begin_turn(session_id)

                tool_calls: List[str] = []
                failed = True
                try:
                    final_state = await self.workflow.ainvoke({
                        "user_text": text,
                        "history": history,
                        "session_id": session_id,
                        "turn_context": turn_context
                    })

                    execution: PlanExecutionResult = final_state["execution"]
                    analysis: AnalysisRunResult = final_state["analysis"]
                    latency_ms = int((time.monotonic() - start) * 1000)

                    result = TurnResult(
                        say_text=execution.spoken_text,
                        output_items=execution.output_items,
                        latency_ms=latency_ms,
                        used_memory=final_state["retrieved"].contributed,
                        tool_calls=execution.tool_calls,
                        analysis_summary=analysis.summary,
                        metadata={"turn_id": turn_context.turn_id, "model": final_state["response"].model}
                    )
                    tool_calls = execution.tool_calls
                    failed = False
                except ModelCallError:
                    metrics.increment_counter("turn_failures")
                    raise
                except Exception as e:
                    logger.error("Turn failed unexpectedly", error=str(e), error_type=type(e).__name__)
                    metrics.increment_counter("turn_failures")
                    raise
                finally:
                    await self.state_manager.complete_turn(session_id, tool_calls, failed=failed)

                metrics.record_latency("turn", latency_ms)
                agent_logger.log_turn(
                    session_id, latency_ms, result.used_memory, result.tool_calls, result.analysis_summary
                )

        self._schedule_post_turn_hooks(text, result, session_id)
        return result

    @asynccontextmanager
    async def _session_lock(self, session_id: str):
        """Serialize turns per session; the lock is dropped once nobody holds or waits on it"""

        lock = self._session_locks.setdefault(session_id, asyncio.Lock())
        self._session_lock_users[session_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._session_lock_users[session_id] -= 1
            if self._session_lock_users[session_id] <= 0:
                del self._session_lock_users[session_id]
                self._session_locks.pop(session_id, None)

    async def end_session(self, session_id: str):
        """Forget the per-session state once a conversation is over"""

        async with self._session_lock(session_id):
            await self.state_manager.clear_state(session_id)
        logger.info("Session ended", session_id=session_id)

    async def status(self) -> Dict[str, Any]:
        """Registered tools and producers, live sessions and metric summaries"""

        return {
            "tools": self.registry.get_available_tools(),
            "producers": [producer.get_info() for producer in self.scheduler.producers.values()],
            "sessions": await self.state_manager.get_all_active_sessions(),
            "metrics": metrics.get_metrics_summary()
        }

    async def _temporal_context(self, text: str) -> str:
        try:
            return await self.memory_store.temporal_context(text, self.settings.max_temporal_chars)
        except Exception as e:
            logger.warning("Temporal context unavailable", error=str(e))
            return ""

    def _schedule_post_turn_hooks(self, text: str, result: TurnResult, session_id: str):
        for hook in self.post_turn_hooks:
            task = asyncio.create_task(self._run_hook(hook, text, result, session_id))
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)

    async def _run_hook(self, hook: PostTurnHook, text: str, result: TurnResult, session_id: str):
        try:
            await hook(text, result, session_id)
        except Exception as e:
            logger.error("Post-turn hook failed", hook=getattr(hook, "__name__", repr(hook)), error=str(e))

    async def wait_for_background_tasks(self):
        """Wait for scheduled post-turn hooks to finish"""

        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def _auto_save_hook(self, text: str, result: TurnResult, session_id: str):
        await self.auto_save.process_message(text, role=MessageRole.USER.value)

    async def _record_messages_hook(self, text: str, result: TurnResult, session_id: str):
        await self.memory_store.record_message(session_id, MessageRole.USER.value, text)
        if result.say_text:
            await self.memory_store.record_message(session_id, MessageRole.ASSISTANT.value, result.say_text)

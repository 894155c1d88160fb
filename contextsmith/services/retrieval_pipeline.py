"""End-to-end context retrieval: plan, gather, then shrink.

Stages run in a fixed order over one ContextData:

1. plan the search (TaskPlanner)
2. seed similar symbols from the plan's general queries
3. run scheduled workers in dependency waves
4. answer critical questions (QuestionLoop)
5. deduplicate, prune to budget, audit

Workers inside a wave may run concurrently, but their results are merged by
this class alone, in schedule order, so the output never depends on timing.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from contextsmith.core.config.pipeline_config import PipelineConfig
from contextsmith.core.exceptions import BackendCallError
from contextsmith.core.models import (
    Chunk,
    QuestionAnswer,
    SearchPlan,
    WorkerResult,
)
from contextsmith.interfaces.project_descriptor import ProjectDescriptor
from contextsmith.interfaces.search_backend import SearchBackend
from contextsmith.services.context import (
    AuditOutcome,
    BudgetPruner,
    ConstantItem,
    ContextAuditor,
    ContextData,
    Deduplicator,
    DesignTokenItem,
    PruneReport,
    SchemaItem,
    SymbolItem,
    TypeItem,
)
from contextsmith.services.question_loop import QuestionLoop
from contextsmith.services.resilient_caller import ResilientCaller
from contextsmith.services.task_planner import TaskPlanner
from contextsmith.services.worker_executor import WorkerExecutor
from contextsmith.services.worker_registry import WorkerSpecRegistry

TYPE_KINDS = frozenset({"type", "interface", "enum", "alias", "type_alias", "struct"})
CONSTANT_KINDS = frozenset({"constant", "const"})
SCHEMA_KINDS = frozenset({"schema", "model"})
DESIGN_TOKEN_KINDS = frozenset({"design_token", "token", "style"})


@dataclass
class PipelineResult:
    """Everything one pipeline run produced."""

    plan: SearchPlan
    context: ContextData
    worker_results: list[WorkerResult] = field(default_factory=list)
    answers: list[QuestionAnswer] = field(default_factory=list)
    prune_report: PruneReport | None = None
    audit: dict[str, AuditOutcome] = field(default_factory=dict)
    stats: dict[str, Any] = field(default_factory=dict)


def chunk_to_context(chunk: Chunk, context: ContextData) -> None:
    """Route one worker chunk into the bucket matching its kind."""
    kind = chunk.kind.strip().lower()
    name = str(chunk.metadata.get("name") or chunk.id)

    if kind in TYPE_KINDS:
        context.types.append(TypeItem(name, chunk.kind, chunk.content, chunk.file_path))
    elif kind in CONSTANT_KINDS:
        context.constants.append(ConstantItem(name, chunk.content, chunk.file_path))
    elif kind in SCHEMA_KINDS:
        context.schemas.append(SchemaItem(name, chunk.content, chunk.file_path))
    elif kind in DESIGN_TOKEN_KINDS:
        context.design_tokens.append(
            DesignTokenItem(name, chunk.content, chunk.kind, chunk.file_path)
        )
    else:
        context.relevant_symbols.append(
            SymbolItem(name, chunk.kind, chunk.file_path, chunk.content)
        )


def plan_waves(schedule: list[str], registry: WorkerSpecRegistry) -> list[list[str]]:
    """Split a schedule into runs of workers whose in-batch dependencies are done.

    A worker whose dependencies can never complete (a cycle) forms a wave of
    its own, so the split always covers the whole schedule in order.
    """
    batch = set(schedule)
    completed: set[str] = set()
    waves: list[list[str]] = []
    i = 0

    while i < len(schedule):
        wave: list[str] = []
        while i < len(schedule):
            spec = registry.get(schedule[i])
            deps = (spec.dependencies & batch) if spec else frozenset()
            if not deps <= completed:
                break
            wave.append(schedule[i])
            i += 1

        if not wave:
            wave = [schedule[i]]
            i += 1

        waves.append(wave)
        completed.update(wave)

    return waves


class ContextRetrievalPipeline:
    """Wires planner, workers, question loop and shrink stages together."""

    def __init__(
        self,
        caller: ResilientCaller,
        search: SearchBackend,
        registry: WorkerSpecRegistry | None = None,
        config: PipelineConfig | None = None,
    ):
        self._config = config or PipelineConfig()
        self._registry = registry or WorkerSpecRegistry.default()
        self._search = search

        self.planner = TaskPlanner(caller, self._registry)
        self.executor = WorkerExecutor(caller, self._registry)
        self.question_loop = QuestionLoop(
            caller,
            search,
            max_retries=self._config.question_max_retries,
            similar_k=self._config.similar_search_k,
        )
        self.deduplicator = Deduplicator()
        self.pruner = BudgetPruner(self._config.max_items_per_category)
        self.auditor = ContextAuditor(
            caller,
            global_threshold=self._config.audit_global_threshold,
            category_threshold=self._config.audit_category_threshold,
            preview_chars=self._config.audit_preview_chars,
        )

    @property
    def config(self) -> PipelineConfig:
        return self._config

    async def run(self, user_task: str, project: ProjectDescriptor) -> PipelineResult:
        """Assemble a budgeted context for a task.

        Raises:
            ConfigError: Only for configuration mistakes; model and search
                failures degrade instead of raising
        """
        start = time.perf_counter()
        context = ContextData()
        stats: dict[str, Any] = {
            "skipped_workers": [],
            "failed_workers": [],
        }

        plan = await self.planner.plan(user_task, project)
        stats["similar_seeded"] = await self._seed_similar(plan, context)

        worker_results = await self._run_workers(plan, user_task, project, stats)
        for result in worker_results:
            for chunk in result.chunks:
                if chunk.is_fallback:
                    continue
                chunk_to_context(chunk, context)

        answers: list[QuestionAnswer] = []
        if self._config.generate_questions:
            answers = await self._answer_questions(user_task, project)
            for answer in answers:
                for symbol in answer.symbols:
                    context.relevant_symbols.append(
                        SymbolItem(symbol.name, symbol.kind, symbol.file_path, symbol.content)
                    )

        stats["gathered_items"] = context.total_items()
        stats["deduplicated"] = self.deduplicator.deduplicate(context)
        prune_report = self.pruner.prune(context, self._config.token_budget)
        audit = await self.auditor.audit(user_task, context)

        stats["final_items"] = context.total_items()
        stats["final_tokens"] = context.estimated_tokens()
        stats["elapsed_seconds"] = round(time.perf_counter() - start, 3)
        logger.info(
            f"Assembled {stats['final_items']} items (~{stats['final_tokens']} tokens) "
            f"in {stats['elapsed_seconds']}s"
        )

        return PipelineResult(
            plan=plan,
            context=context,
            worker_results=worker_results,
            answers=answers,
            prune_report=prune_report,
            audit=audit,
            stats=stats,
        )

    async def _seed_similar(self, plan: SearchPlan, context: ContextData) -> int:
        seeded = 0
        for query in plan.search_queries:
            try:
                hits = await self._search.search_similar(
                    query.query, self._config.similar_search_k
                )
            except Exception as e:
                logger.warning(f"Similarity seeding failed for '{query.query}': {e}")
                continue
            for hit in hits:
                context.similar_symbols.append(
                    SymbolItem(hit.name, hit.kind, hit.file_path, hit.content)
                )
                seeded += 1
        return seeded

    async def _run_workers(
        self,
        plan: SearchPlan,
        user_task: str,
        project: ProjectDescriptor,
        stats: dict[str, Any],
    ) -> list[WorkerResult]:
        runnable = []
        for worker_id in plan.execution_schedule:
            if worker_id in self._registry:
                runnable.append(worker_id)
            else:
                logger.warning(f"Skipping unknown worker from plan: {worker_id}")
                stats["skipped_workers"].append(worker_id)

        description = project.to_description()
        semaphore = asyncio.Semaphore(self._config.max_concurrency)

        async def run_one(worker_id: str) -> WorkerResult | None:
            worker_plan = plan.get_worker(worker_id)
            queries = worker_plan.queries if worker_plan else []
            async with semaphore:
                try:
                    return await self.executor.execute(
                        worker_id, user_task, description, queries
                    )
                except BackendCallError as e:
                    logger.warning(f"Worker {worker_id} failed: {e}")
                    return None

        results: list[WorkerResult] = []
        for wave in plan_waves(runnable, self._registry):
            if self._config.max_concurrency == 1:
                wave_results = [await run_one(worker_id) for worker_id in wave]
            else:
                wave_results = await asyncio.gather(*(run_one(w) for w in wave))

            for worker_id, result in zip(wave, wave_results):
                if result is None:
                    stats["failed_workers"].append(worker_id)
                else:
                    results.append(result)

        return results

    async def _answer_questions(
        self, user_task: str, project: ProjectDescriptor
    ) -> list[QuestionAnswer]:
        language = getattr(project, "language", "") or ""
        framework = getattr(project, "framework", "") or None
        questions = await self.question_loop.generate_critical_questions(
            user_task, language, framework
        )
        if not questions:
            return []
        return await self.question_loop.execute_questions(questions)

"""Tests for task classification, planning and dependency ordering."""

import json

import pytest

from contextsmith.core.exceptions import LLMCallError
from contextsmith.interfaces.project_descriptor import ProjectSignature
from contextsmith.services.task_planner import (
    FALLBACK_INTENT,
    TaskPlanner,
    build_execution_plan,
)
from contextsmith.services.worker_registry import (
    WorkerCategory,
    WorkerPriority,
    WorkerSpec,
    WorkerSpecRegistry,
)
from tests.helpers.fake_llm_providers import FailingLLMProvider, ScriptedLLMProvider

PROJECT = ProjectSignature(language="typescript", framework="nextjs")


def _spec(key: str, deps: tuple[str, ...] = ()) -> WorkerSpec:
    return WorkerSpec(
        key=key,
        description=f"{key} specialist",
        template="Task: {user_prompt}",
        category=WorkerCategory.BACKEND,
        priority=WorkerPriority.MEDIUM,
        dependencies=frozenset(deps),
    )


@pytest.fixture
def cyclic_registry() -> WorkerSpecRegistry:
    return WorkerSpecRegistry(
        [
            _spec("root"),
            _spec("child", ("root",)),
            _spec("grandchild", ("child",)),
            _spec("ping", ("pong",)),
            _spec("pong", ("ping",)),
        ]
    )


def _assert_dependencies_first(order, registry):
    position = {w: i for i, w in enumerate(order)}
    for worker_id in order:
        spec = registry.get(worker_id)
        if spec is None:
            continue
        for dep in spec.dependencies:
            if dep in position:
                assert position[dep] < position[worker_id], (dep, worker_id)


class TestBuildExecutionPlan:
    def test_dependencies_run_first(self, registry):
        ids = ["test_scanner", "frontend_scanner", "backend_scanner", "stack_detector"]
        order = build_execution_plan(ids, registry)

        assert sorted(order) == sorted(ids)
        _assert_dependencies_first(order, registry)
        assert order[0] == "stack_detector"

    def test_missing_dependency_blocks_nothing_outside_batch(self, registry):
        # stack_detector is not in the batch, so frontend_scanner can never be
        # satisfied and is appended when progress stops
        order = build_execution_plan(["frontend_scanner", "data_scanner"], registry)
        assert order == ["frontend_scanner", "data_scanner"]

    def test_cycle_terminates_with_every_worker(self, cyclic_registry):
        ids = ["ping", "grandchild", "pong", "child", "root"]
        order = build_execution_plan(ids, cyclic_registry)

        assert sorted(order) == sorted(ids)
        assert order[:3] == ["root", "child", "grandchild"]
        assert order[3:] == ["ping", "pong"]

    def test_unknown_workers_emitted_immediately(self, cyclic_registry):
        order = build_execution_plan(["child", "mystery", "root"], cyclic_registry)
        assert order == ["mystery", "root", "child"]

    def test_empty_batch(self, registry):
        assert build_execution_plan([], registry) == []

    def test_already_ordered_input_is_stable(self, registry):
        ids = ["stack_detector", "frontend_scanner", "backend_scanner"]
        assert build_execution_plan(ids, registry) == ids


class TestClassifyTask:
    @pytest.mark.asyncio
    async def test_label_from_reply(self, make_caller, registry):
        provider = ScriptedLLMProvider(['```json\n{"task_type": "BugFix"}\n```'])
        planner = TaskPlanner(make_caller(provider), registry)

        assert await planner.classify_task("fix login", PROJECT) == "bugfix"

        call = provider.calls[0]
        assert call.system == "You are a task classification specialist."
        assert "fix login" in call.prompt
        assert "Language: typescript, Framework: nextjs" in call.prompt

    @pytest.mark.asyncio
    async def test_defaults_to_feature(self, make_caller, registry):
        for reply in ("not json", '{"complexity": "simple"}', '{"task_type": ""}'):
            planner = TaskPlanner(make_caller(ScriptedLLMProvider([reply])), registry)
            assert await planner.classify_task("x", PROJECT) == "feature"

    @pytest.mark.asyncio
    async def test_backend_failure_defaults_to_feature(self, make_caller, registry):
        planner = TaskPlanner(make_caller(FailingLLMProvider()), registry)
        assert await planner.classify_task("x", PROJECT) == "feature"

    @pytest.mark.asyncio
    async def test_registry_without_classifier(self, make_caller, cyclic_registry):
        provider = ScriptedLLMProvider()
        planner = TaskPlanner(make_caller(provider), cyclic_registry)

        assert await planner.classify_task("x", PROJECT) == "feature"
        assert provider.calls == []


class TestPlan:
    @pytest.mark.asyncio
    async def test_plan_from_reply(self, make_caller, registry):
        plan_reply = {
            "global_intent": "add_signup_form",
            "search_queries": [{"query": "Button", "kind": "component"}],
            "workers": [
                {"worker_id": "frontend_scanner", "queries": [{"query": "Form"}]},
                {"worker_id": "stack_detector"},
            ],
            "execution_schedule": ["frontend_scanner", "stack_detector"],
        }
        provider = ScriptedLLMProvider(['{"task_type": "feature"}', json.dumps(plan_reply)])
        planner = TaskPlanner(make_caller(provider), registry)

        plan = await planner.plan("add a signup form", PROJECT)

        assert plan.global_intent == "add_signup_form"
        assert [q.query for q in plan.search_queries] == ["Button"]
        # Computed from dependencies, not taken from the reply
        assert plan.execution_schedule == ["stack_detector", "frontend_scanner"]

        planner_call = provider.calls[1]
        assert "routing agent" in planner_call.system
        assert "- frontend_scanner:" in planner_call.system
        assert "frontend_scanner, backend_scanner, data_scanner, api_scanner" in planner_call.prompt

    @pytest.mark.asyncio
    async def test_fallback_plan_on_undecodable_reply(self, make_caller, registry):
        provider = ScriptedLLMProvider(['{"task_type": "bugfix"}', "I cannot do that."])
        planner = TaskPlanner(make_caller(provider), registry)

        plan = await planner.plan("fix the crash on save", PROJECT)

        assert plan.global_intent == FALLBACK_INTENT
        assert [q.query for q in plan.search_queries] == ["fix the crash on save"]
        assert plan.search_queries[0].kind == "any"
        assert plan.worker_ids == ["error_analyzer", "test_scanner", "frontend_scanner"]
        # Neither stack_detector nor backend_scanner is in the batch, so the
        # blocked workers are appended in their original order
        assert plan.execution_schedule == ["error_analyzer", "test_scanner", "frontend_scanner"]

    @pytest.mark.asyncio
    async def test_fallback_plan_on_empty_reply_object(self, make_caller, registry):
        provider = ScriptedLLMProvider(['{"task_type": "feature"}', "{}"])
        planner = TaskPlanner(make_caller(provider), registry)

        plan = await planner.plan("add search", PROJECT)
        assert plan.global_intent == FALLBACK_INTENT

    @pytest.mark.asyncio
    async def test_fallback_plan_on_wrong_shape(self, make_caller, registry):
        provider = ScriptedLLMProvider(
            ['{"task_type": "feature"}', '{"global_intent": "x", "workers": "all"}']
        )
        planner = TaskPlanner(make_caller(provider), registry)

        plan = await planner.plan("add search", PROJECT)
        assert plan.global_intent == FALLBACK_INTENT

    @pytest.mark.asyncio
    async def test_unavailable_backend_still_plans(self, make_caller, registry):
        planner = TaskPlanner(make_caller(FailingLLMProvider(), max_retries=1), registry)

        plan = await planner.plan("add search", PROJECT)

        assert plan.global_intent == FALLBACK_INTENT
        assert plan.worker_ids == ["frontend_scanner", "backend_scanner", "data_scanner"]
        assert len(plan.workers) <= 3

    @pytest.mark.asyncio
    async def test_retry_then_plan(self, make_caller, registry):
        provider = ScriptedLLMProvider(
            [
                '{"task_type": "refactor"}',
                LLMCallError("overloaded", 503),
                '{"global_intent": "cleanup", "workers": [{"worker_id": "refactor_advisor"}]}',
            ]
        )
        planner = TaskPlanner(make_caller(provider, max_retries=2), registry)

        plan = await planner.plan("clean up the api layer", PROJECT)
        assert plan.global_intent == "cleanup"
        assert plan.execution_schedule == ["refactor_advisor"]


class TestFallbackPlan:
    def test_blank_task_has_no_queries(self, make_caller, registry):
        planner = TaskPlanner(make_caller(ScriptedLLMProvider()), registry)
        plan = planner.fallback_plan("   ", ["frontend_scanner"])

        assert plan.search_queries == []
        assert plan.worker_ids == ["frontend_scanner"]

    def test_query_is_the_raw_task(self, make_caller, registry):
        planner = TaskPlanner(make_caller(ScriptedLLMProvider()), registry)
        plan = planner.fallback_plan("  fix the login form\n", ["frontend_scanner"])

        assert [q.query for q in plan.search_queries] == ["  fix the login form\n"]
        assert plan.search_queries[0].target_paths == []
        assert [q.query for q in plan.workers[0].queries] == ["  fix the login form\n"]

    def test_unregistered_recommendations_dropped(self, make_caller, registry):
        planner = TaskPlanner(make_caller(ScriptedLLMProvider()), registry)
        plan = planner.fallback_plan(
            "task", ["ghost_worker", "frontend_scanner", "backend_scanner", "data_scanner"]
        )

        # Only the first three recommendations are considered
        assert plan.worker_ids == ["frontend_scanner", "backend_scanner"]
        for worker in plan.workers:
            assert [q.query for q in worker.queries] == ["task"]

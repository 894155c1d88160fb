"""Tests for model-backed context auditing."""

import json

import pytest

from contextsmith.services.context import (
    AuditStatus,
    ContextAuditor,
    ContextData,
    SymbolItem,
    TypeItem,
)
from contextsmith.services.context.context_auditor import (
    resolve_keep_indices,
    truncate_preview,
)
from tests.helpers.fake_llm_providers import (
    FailingLLMProvider,
    RoutingLLMProvider,
    ScriptedLLMProvider,
)

TASK = "add a signup form"


def _crowded_context(relevant: int = 10, types: int = 4) -> ContextData:
    return ContextData(
        relevant_symbols=[
            SymbolItem(f"S{i}", "function", f"src/s{i}.ts", f"body {i}")
            for i in range(relevant)
        ],
        types=[TypeItem(f"T{i}", "interface", f"interface T{i} {{}}") for i in range(types)],
    )


def _keep(indices) -> str:
    return json.dumps({"keep_indices": indices})


class TestHelpers:
    def test_truncate_preview(self):
        assert truncate_preview("short", 320) == "short"
        preview = truncate_preview("x" * 400, 320)
        assert preview == "x" * 320 + "…"

    def test_resolve_keep_indices(self):
        assert resolve_keep_indices([2, 0, 2, 99, -1, "1", 1.0, True, 1], 3) == [2, 0, 1]
        assert resolve_keep_indices("0,1", 3) == []
        assert resolve_keep_indices(None, 3) == []


class TestContextAuditor:
    @pytest.mark.asyncio
    async def test_below_global_gate_is_skipped(self, make_caller):
        provider = ScriptedLLMProvider()
        context = _crowded_context(relevant=10, types=2)
        auditor = ContextAuditor(make_caller(provider))

        outcomes = await auditor.audit(TASK, context)

        assert provider.calls == []
        assert all(o.status is AuditStatus.SKIPPED for o in outcomes.values())
        assert outcomes["relevant_symbols"].before == 10
        assert len(context.relevant_symbols) == 10

    @pytest.mark.asyncio
    async def test_crowded_category_pruned_in_returned_order(self, make_caller):
        provider = RoutingLLMProvider({"Category: relevant_symbols": _keep([3, 0, 7])})
        context = _crowded_context()
        auditor = ContextAuditor(make_caller(provider))

        outcomes = await auditor.audit(TASK, context)

        assert [s.name for s in context.relevant_symbols] == ["S3", "S0", "S7"]
        relevant = outcomes["relevant_symbols"]
        assert relevant.status is AuditStatus.OK
        assert (relevant.before, relevant.after, relevant.removed) == (10, 3, 7)
        # Types are below the per-category gate
        assert outcomes["types"].status is AuditStatus.SKIPPED
        assert len(context.types) == 4
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_prompt_carries_item_summaries(self, make_caller):
        provider = RoutingLLMProvider({"Category: relevant_symbols": _keep([0])})
        context = _crowded_context()
        context.relevant_symbols[0].content = "y" * 500
        auditor = ContextAuditor(make_caller(provider))

        await auditor.audit(TASK, context)

        call = provider.calls[0]
        assert "context auditor" in call.system
        assert TASK in call.prompt
        assert '"index": 9' in call.prompt
        assert '"file_path": "src/s0.ts"' in call.prompt
        assert "y" * 320 + "…" in call.prompt
        assert "y" * 321 not in call.prompt

    @pytest.mark.asyncio
    async def test_empty_selection_leaves_category_unchanged(self, make_caller):
        for reply in (_keep([]), _keep([42, -3]), '{"keep": [1]}'):
            context = _crowded_context()
            auditor = ContextAuditor(make_caller(ScriptedLLMProvider([reply])))

            outcomes = await auditor.audit(TASK, context)

            assert outcomes["relevant_symbols"].status is AuditStatus.UNCHANGED
            assert len(context.relevant_symbols) == 10

    @pytest.mark.asyncio
    async def test_undecodable_reply_is_error(self, make_caller):
        context = _crowded_context()
        auditor = ContextAuditor(make_caller(ScriptedLLMProvider(["keep them all"])))

        outcomes = await auditor.audit(TASK, context)

        assert outcomes["relevant_symbols"].status is AuditStatus.ERROR
        assert len(context.relevant_symbols) == 10

    @pytest.mark.asyncio
    async def test_failure_contained_to_one_category(self, make_caller):
        provider = RoutingLLMProvider(
            {
                "Category: relevant_symbols": RuntimeError("boom"),
                "Category: types": _keep([1]),
            }
        )
        context = _crowded_context(relevant=10, types=9)
        auditor = ContextAuditor(make_caller(provider))

        outcomes = await auditor.audit(TASK, context)

        assert outcomes["relevant_symbols"].status is AuditStatus.ERROR
        assert len(context.relevant_symbols) == 10
        assert outcomes["types"].status is AuditStatus.OK
        assert [t.name for t in context.types] == ["T1"]

    @pytest.mark.asyncio
    async def test_unavailable_model_changes_nothing(self, make_caller):
        context = _crowded_context()
        auditor = ContextAuditor(make_caller(FailingLLMProvider()))

        outcomes = await auditor.audit(TASK, context)

        assert outcomes["relevant_symbols"].status is AuditStatus.ERROR
        assert context.counts()["relevant_symbols"] == 10

    @pytest.mark.asyncio
    async def test_reports_every_audited_bucket(self, make_caller):
        provider = RoutingLLMProvider({"Category:": _keep([0])})
        context = _crowded_context()
        auditor = ContextAuditor(make_caller(provider))

        outcomes = await auditor.audit(TASK, context)

        assert set(outcomes) == {"relevant_symbols", "similar_symbols", "types", "schemas"}

"""Tests for the search, verify and reformulate loop."""

import json

import pytest

from contextsmith.core.exceptions import SearchBackendError
from contextsmith.core.models import CriticalQuestion, Priority, QuestionStatus
from contextsmith.services.question_loop import (
    QuestionLoop,
    dominant_term,
    heuristic_reformulation,
)
from tests.helpers.fake_llm_providers import (
    FailingLLMProvider,
    RoutingLLMProvider,
    ScriptedLLMProvider,
)
from tests.helpers.fake_search import FakeSearchBackend, UnreachableSearchBackend, symbol

VERIFY_MARKER = "Verify whether these results"
REFORMULATE_MARKER = "did not find the right results"

BUTTON_QUESTION = CriticalQuestion(
    question="Is there a Button component?",
    search_query="Button",
    expected_type="component",
    priority=Priority.CRITICAL,
)


def _verdict(is_correct) -> str:
    return json.dumps({"is_correct": is_correct, "reason": "checked"})


class TestHeuristics:
    def test_dominant_term_is_longest_token(self):
        assert dominant_term("user profile page") == "profile"
        assert dominant_term("abc def") == "abc"
        assert dominant_term("!!!") is None

    def test_suffix_appended_to_dominant_term(self):
        question = CriticalQuestion("q", "User")
        assert heuristic_reformulation(question) == "UserModel"

        question = CriticalQuestion("q", "user profile form")
        assert heuristic_reformulation(question) == "user profileModel form"

    def test_expected_type_prefix_when_suffix_present(self):
        question = CriticalQuestion("q", "UserModel", expected_type="type")
        assert heuristic_reformulation(question) == "type UserModel"

    def test_prefix_defaults_to_unknown(self):
        question = CriticalQuestion("q", "!!!", expected_type="")
        assert heuristic_reformulation(question) == "unknown !!!"

    def test_always_differs_from_input(self):
        for query in ("Button", "ButtonModel", "a b", "??"):
            question = CriticalQuestion("q", query)
            assert heuristic_reformulation(question) != query


class TestExecuteQuestion:
    @pytest.mark.asyncio
    async def test_found_after_two_empty_searches(self, make_caller):
        button = symbol("Button", "component", "src/ui/Button.tsx")
        search = FakeSearchBackend(similar=[[], [], [button]])
        provider = RoutingLLMProvider(
            {
                VERIFY_MARKER: _verdict(True),
                REFORMULATE_MARKER: '{"new_query": "Button component"}',
            }
        )
        loop = QuestionLoop(make_caller(provider), search)

        outcome = await loop.execute_question(BUTTON_QUESTION)

        assert outcome.status is QuestionStatus.FOUND
        assert outcome.attempts == 3
        assert len(outcome.answers) == 1
        answer = outcome.answers[0]
        assert answer.question == BUTTON_QUESTION.question
        assert answer.confidence == 1.0
        assert [s.name for s in answer.symbols] == ["Button"]

        queries = [q for q, _ in search.similar_queries]
        assert queries[0] == "Button"
        assert queries[1] == "Button component"
        # Model repeated itself, so the heuristic kicked in
        assert queries[2] == "Button componentModel"

    @pytest.mark.asyncio
    async def test_partially_found_when_never_verified(self, make_caller):
        search = FakeSearchBackend(similar=[[symbol("Btn")]])
        provider = RoutingLLMProvider({VERIFY_MARKER: _verdict(False)})
        loop = QuestionLoop(make_caller(provider), search, max_retries=3)

        outcome = await loop.execute_question(BUTTON_QUESTION)

        assert outcome.status is QuestionStatus.PARTIALLY_FOUND
        assert outcome.attempts == 3
        assert outcome.answers[0].confidence == 0.5
        assert len(search.similar_queries) == 3

    @pytest.mark.asyncio
    async def test_not_found_when_searches_stay_empty(self, make_caller):
        search = FakeSearchBackend()
        provider = RoutingLLMProvider({REFORMULATE_MARKER: '{"new_query": "Btn"}'})
        loop = QuestionLoop(make_caller(provider), search)

        outcome = await loop.execute_question(BUTTON_QUESTION)

        assert outcome.status is QuestionStatus.NOT_FOUND
        assert outcome.answers == []
        assert outcome.attempts == 3
        assert outcome.final_query == "BtnModel"

    @pytest.mark.asyncio
    async def test_unavailable_model_accepts_first_results(self, make_caller):
        search = FakeSearchBackend(similar=[[symbol("Button")]])
        loop = QuestionLoop(make_caller(FailingLLMProvider()), search)

        outcome = await loop.execute_question(BUTTON_QUESTION)

        assert outcome.status is QuestionStatus.FOUND
        assert outcome.attempts == 1

    @pytest.mark.asyncio
    async def test_unavailable_model_still_reformulates(self, make_caller):
        search = FakeSearchBackend(similar=[[], [symbol("ButtonModel")]])
        loop = QuestionLoop(make_caller(FailingLLMProvider()), search)

        outcome = await loop.execute_question(BUTTON_QUESTION)

        assert outcome.status is QuestionStatus.FOUND
        assert outcome.final_query == "ButtonModel"

    @pytest.mark.asyncio
    async def test_unreachable_search_is_not_found(self, make_caller):
        provider = RoutingLLMProvider({})
        loop = QuestionLoop(make_caller(provider), UnreachableSearchBackend())

        outcome = await loop.execute_question(BUTTON_QUESTION)
        assert outcome.status is QuestionStatus.NOT_FOUND


class TestSearch:
    @pytest.mark.asyncio
    async def test_merges_expanded_similar_hits_with_symbol_search(self, make_caller):
        hit = symbol("Button", file_path="src/ui/Button.tsx", content="")
        full = symbol("Button", file_path="src/ui/Button.tsx", content="full body")
        other = symbol("Button", file_path="src/legacy/Button.tsx")
        icon = symbol("IconButton")
        search = FakeSearchBackend(
            similar=[[hit]],
            symbols=[[full, icon]],
            by_name={"Button": [full, other]},
        )
        loop = QuestionLoop(make_caller(ScriptedLLMProvider()), search)

        results = await loop.search("Button")

        assert [(s.name, s.file_path) for s in results] == [
            ("Button", "src/ui/Button.tsx"),
            ("Button", "src/legacy/Button.tsx"),
            ("IconButton", "src/IconButton.ts"),
        ]
        assert results[0].content == "full body"
        assert search.similar_queries == [("Button", 10)]

    @pytest.mark.asyncio
    async def test_unexpanded_hit_is_kept(self, make_caller):
        hit = symbol("useAuth")
        search = FakeSearchBackend(similar=[[hit]])
        loop = QuestionLoop(make_caller(ScriptedLLMProvider()), search)

        assert await loop.search("auth hook") == [hit]

    @pytest.mark.asyncio
    async def test_failing_similarity_store_contributes_nothing(self, make_caller):
        by_name = symbol("Button")
        search = FakeSearchBackend(
            similar=[SearchBackendError("down", backend="vector")],
            symbols=[[by_name]],
        )
        loop = QuestionLoop(make_caller(ScriptedLLMProvider()), search)

        assert await loop.search("Button") == [by_name]

    @pytest.mark.asyncio
    async def test_failing_symbol_store_contributes_nothing(self, make_caller):
        hit = symbol("Button")
        search = FakeSearchBackend(
            similar=[[hit]],
            symbols=[SearchBackendError("down", backend="graph")],
        )
        loop = QuestionLoop(make_caller(ScriptedLLMProvider()), search)

        assert await loop.search("Button") == [hit]

    @pytest.mark.asyncio
    async def test_graph_store_down_keeps_similarity_hits(self, make_caller):
        button = symbol("Button")
        icon = symbol("IconButton")
        down = SearchBackendError("down", backend="graph")
        search = FakeSearchBackend(
            similar=[[button, icon]],
            symbols=[down],
            by_name_error=down,
        )
        loop = QuestionLoop(make_caller(ScriptedLLMProvider()), search)

        results = await loop.search("Button")

        assert [s.name for s in results] == ["Button", "IconButton"]
        assert search.name_lookups == ["Button", "IconButton"]


class TestVerifyAndReformulate:
    @pytest.mark.asyncio
    async def test_verdict_fields(self, make_caller):
        reply = json.dumps(
            {"is_correct": False, "reason": "wrong kind", "suggestion": "ButtonProps"}
        )
        loop = QuestionLoop(make_caller(ScriptedLLMProvider([reply])), FakeSearchBackend())

        result = await loop.verify(BUTTON_QUESTION, [symbol("Button")])

        assert result.is_correct is False
        assert result.reason == "wrong kind"
        assert result.suggestion == "ButtonProps"

    @pytest.mark.asyncio
    async def test_missing_verdict_fails_open(self, make_caller):
        for reply in ('{"is_correct": "yes"}', "no idea", "{}"):
            loop = QuestionLoop(
                make_caller(ScriptedLLMProvider([reply])), FakeSearchBackend()
            )
            result = await loop.verify(BUTTON_QUESTION, [symbol("Button")])
            assert result.is_correct is True

    @pytest.mark.asyncio
    async def test_verification_prompt_lists_at_most_five_results(self, make_caller):
        provider = ScriptedLLMProvider([_verdict(True)])
        loop = QuestionLoop(make_caller(provider), FakeSearchBackend())

        await loop.verify(BUTTON_QUESTION, [symbol(f"S{i}") for i in range(8)])

        prompt = provider.calls[0].prompt
        assert "- S4 (function)" in prompt
        assert "- S5 (function)" not in prompt

    @pytest.mark.asyncio
    async def test_model_reformulation_used(self, make_caller):
        provider = ScriptedLLMProvider(['```json\n{"new_query": "PrimaryButton"}\n```'])
        loop = QuestionLoop(make_caller(provider), FakeSearchBackend())

        question = await loop.reformulate(BUTTON_QUESTION)

        assert question.search_query == "PrimaryButton"
        assert question.question == BUTTON_QUESTION.question
        assert question.priority is Priority.CRITICAL

    @pytest.mark.asyncio
    async def test_blank_reformulation_uses_heuristic(self, make_caller):
        provider = ScriptedLLMProvider(['{"new_query": "  "}'])
        loop = QuestionLoop(make_caller(provider), FakeSearchBackend())

        question = await loop.reformulate(BUTTON_QUESTION)
        assert question.search_query == "ButtonModel"


class TestQuestionGeneration:
    @pytest.mark.asyncio
    async def test_parses_questions(self, make_caller):
        reply = json.dumps(
            [
                {
                    "question": "Is there a Button?",
                    "search_query": "Button",
                    "expected_type": "component",
                    "priority": "critical",
                },
                {"question": "Is there a user type?", "search_query": "User"},
                {"question": "missing query"},
                "junk",
            ]
        )
        provider = ScriptedLLMProvider([reply])
        loop = QuestionLoop(make_caller(provider), FakeSearchBackend())

        questions = await loop.generate_critical_questions(
            "add a signup form", "typescript", "nextjs"
        )

        assert questions == [
            CriticalQuestion("Is there a Button?", "Button", "component", Priority.CRITICAL),
            CriticalQuestion("Is there a user type?", "User", "unknown", Priority.MEDIUM),
        ]
        assert "typescript project using the nextjs framework" in provider.calls[0].prompt

    @pytest.mark.asyncio
    async def test_failures_give_no_questions(self, make_caller):
        loop = QuestionLoop(make_caller(FailingLLMProvider()), FakeSearchBackend())
        assert await loop.generate_critical_questions("t", "python") == []

        loop = QuestionLoop(
            make_caller(ScriptedLLMProvider(['{"question": "x"}'])), FakeSearchBackend()
        )
        assert await loop.generate_critical_questions("t", "python") == []

    @pytest.mark.asyncio
    async def test_execute_questions_skips_unanswered(self, make_caller):
        found = CriticalQuestion("Is there a Button?", "Button")
        missing = CriticalQuestion("Is there a Modal?", "Modal", priority=Priority.CRITICAL)

        class PerQuerySearch(FakeSearchBackend):
            async def search_similar(self, query, k):
                return [symbol("Button")] if "Button" in query else []

        provider = RoutingLLMProvider({VERIFY_MARKER: _verdict(True)})
        loop = QuestionLoop(make_caller(provider), PerQuerySearch())

        answers = await loop.execute_questions([missing, found])

        assert [a.question for a in answers] == ["Is there a Button?"]
        assert answers[0].confidence == 1.0

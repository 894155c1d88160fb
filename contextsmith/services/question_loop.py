"""Search, verify and reformulate loop for critical questions.

Each question gets a bounded number of attempts. An attempt searches both
retrieval backends, asks the model whether the hits answer the question, and
reformulates the query when they do not. Every model-backed step has a
deterministic fallback, so the loop terminates and makes progress even when
the text-generation backend is completely unavailable.
"""

import dataclasses
import re

from loguru import logger

from contextsmith.core.constants import (
    QUESTION_MAX_RETRIES,
    SIMILAR_SEARCH_K,
    VERIFY_MAX_RESULTS,
)
from contextsmith.core.exceptions import BackendCallError
from contextsmith.core.models import (
    CriticalQuestion,
    Priority,
    QuestionAnswer,
    QuestionOutcome,
    QuestionStatus,
    SymbolMatch,
    VerificationResult,
)
from contextsmith.core.utils import (
    Malformed,
    decode_json_array,
    decode_json_object,
)
from contextsmith.interfaces.search_backend import SearchBackend
from contextsmith.services import prompts
from contextsmith.services.resilient_caller import ResilientCaller

_TERM_RE = re.compile(r"[A-Za-z0-9]+")
HEURISTIC_SUFFIX = "Model"


def dominant_term(query: str) -> str | None:
    """Longest alphanumeric token of a query (first one wins ties)."""
    terms = _TERM_RE.findall(query)
    if not terms:
        return None
    return max(terms, key=len)


def heuristic_reformulation(question: CriticalQuestion) -> str:
    """Deterministic rewrite that always differs from the current query.

    "User" becomes "UserModel"; a query whose dominant term already carries
    the suffix is prefixed with the expected type instead.
    """
    query = question.search_query
    term = dominant_term(query)
    if term and not term.endswith(HEURISTIC_SUFFIX):
        return query.replace(term, f"{term}{HEURISTIC_SUFFIX}", 1)
    prefix = question.expected_type.strip() or "unknown"
    return f"{prefix} {query}"


class QuestionLoop:
    """Answers critical questions against a search backend."""

    def __init__(
        self,
        caller: ResilientCaller,
        search: SearchBackend,
        max_retries: int = QUESTION_MAX_RETRIES,
        similar_k: int = SIMILAR_SEARCH_K,
    ):
        self._caller = caller
        self._search = search
        self._max_retries = max(max_retries, 1)
        self._similar_k = similar_k

    async def generate_critical_questions(
        self, user_task: str, language: str, framework: str | None = None
    ) -> list[CriticalQuestion]:
        """Ask the model for 3-5 lookups worth doing before writing code.

        Returns an empty list when the model is unavailable or its reply is
        unusable.
        """
        prompt = prompts.build_question_generation_prompt(user_task, language, framework)
        try:
            reply = await self._caller.generate(prompt)
        except BackendCallError as e:
            logger.warning(f"Question generation unavailable: {e}")
            return []

        decoded = decode_json_array(reply)
        if isinstance(decoded, Malformed):
            logger.warning(f"Undecodable question list ({decoded.error})")
            return []

        questions: list[CriticalQuestion] = []
        for entry in decoded.value:
            if not isinstance(entry, dict):
                continue
            question = entry.get("question")
            search_query = entry.get("search_query")
            if not (isinstance(question, str) and question.strip()):
                continue
            if not (isinstance(search_query, str) and search_query.strip()):
                continue
            expected_type = entry.get("expected_type")
            questions.append(
                CriticalQuestion(
                    question=question.strip(),
                    search_query=search_query.strip(),
                    expected_type=expected_type
                    if isinstance(expected_type, str) and expected_type
                    else "unknown",
                    priority=Priority.parse(entry.get("priority")),
                )
            )

        logger.info(f"Generated {len(questions)} critical questions")
        return questions

    async def execute_questions(
        self, questions: list[CriticalQuestion]
    ) -> list[QuestionAnswer]:
        """Run every question; collect found and partially-found answers in order."""
        answers: list[QuestionAnswer] = []
        for i, question in enumerate(questions, start=1):
            logger.info(f"[question {i}/{len(questions)}] {question.question}")
            outcome = await self.execute_question(question)

            if outcome.status == QuestionStatus.NOT_FOUND:
                if question.priority == Priority.CRITICAL:
                    logger.warning(f"Critical question not answered: {question.question}")
                else:
                    logger.debug(f"Optional question not answered: {question.question}")
                continue
            answers.extend(outcome.answers)

        return answers

    async def execute_question(self, question: CriticalQuestion) -> QuestionOutcome:
        """Drive one question through up to ``max_retries`` attempts."""
        for attempt in range(1, self._max_retries + 1):
            is_last = attempt == self._max_retries
            logger.debug(
                f"Searching '{question.search_query}' (attempt {attempt}/{self._max_retries})"
            )
            results = await self.search(question.search_query)

            if not results:
                if is_last:
                    return QuestionOutcome.not_found(attempt, question.search_query)
                question = await self.reformulate(question)
                continue

            verification = await self.verify(question, results)
            logger.debug(
                f"Verification: is_correct={verification.is_correct} ({verification.reason})"
            )

            if verification.is_correct:
                return QuestionOutcome(
                    status=QuestionStatus.FOUND,
                    answers=[QuestionAnswer(question.question, results, 1.0)],
                    attempts=attempt,
                    final_query=question.search_query,
                )

            if is_last:
                return QuestionOutcome(
                    status=QuestionStatus.PARTIALLY_FOUND,
                    answers=[QuestionAnswer(question.question, results, 0.5)],
                    attempts=attempt,
                    final_query=question.search_query,
                )
            question = await self.reformulate(question)

        # Unreachable: the final attempt always returns
        return QuestionOutcome.not_found(self._max_retries, question.search_query)

    async def search(self, query: str) -> list[SymbolMatch]:
        """Merge similarity and name search, deduplicated by (name, file_path).

        Similarity hits come first and win conflicts. A failing backend
        contributes zero results.
        """
        hits: list[SymbolMatch] = []
        try:
            hits = await self._search.search_similar(query, self._similar_k)
        except Exception as e:
            logger.warning(f"Similarity search failed for '{query}': {e}")

        similar: list[SymbolMatch] = []
        for hit in hits:
            try:
                expanded = await self._search.find_symbols_by_name(hit.name)
            except Exception as e:
                logger.debug(f"Name expansion failed for '{hit.name}': {e}")
                expanded = []
            similar.extend(expanded or [hit])

        by_name: list[SymbolMatch] = []
        try:
            by_name = await self._search.search_symbols(query)
        except Exception as e:
            logger.warning(f"Symbol search failed for '{query}': {e}")

        merged: list[SymbolMatch] = []
        seen: set[tuple[str, str]] = set()
        for symbol in [*similar, *by_name]:
            if symbol.key not in seen:
                seen.add(symbol.key)
                merged.append(symbol)
        return merged

    async def verify(
        self, question: CriticalQuestion, results: list[SymbolMatch]
    ) -> VerificationResult:
        """Ask whether the hits answer the question; fail open on any problem."""
        prompt = prompts.build_verification_prompt(question, results, VERIFY_MAX_RESULTS)
        try:
            reply = await self._caller.generate(prompt)
        except BackendCallError as e:
            logger.warning(f"Verification unavailable, accepting results: {e}")
            return VerificationResult(bool(results), "verification unavailable")

        decoded = decode_json_object(reply)
        if isinstance(decoded, Malformed):
            logger.debug(f"Undecodable verification reply ({decoded.error}), accepting results")
            return VerificationResult(bool(results), "unparseable verification")

        data = decoded.value
        is_correct = data.get("is_correct")
        if not isinstance(is_correct, bool):
            return VerificationResult(bool(results), "verification without verdict")

        suggestion = data.get("suggestion")
        return VerificationResult(
            is_correct=is_correct,
            reason=str(data.get("reason") or ""),
            suggestion=suggestion if isinstance(suggestion, str) and suggestion else None,
        )

    async def reformulate(self, question: CriticalQuestion) -> CriticalQuestion:
        """New question with a different search_query; heuristic when the model fails."""
        prompt = prompts.build_reformulation_prompt(question)
        new_query: str | None = None
        try:
            reply = await self._caller.generate(prompt)
        except BackendCallError as e:
            logger.warning(f"Reformulation unavailable, using heuristic: {e}")
        else:
            decoded = decode_json_object(reply)
            if isinstance(decoded, Malformed):
                logger.debug(f"Undecodable reformulation ({decoded.error}), using heuristic")
            else:
                candidate = decoded.value.get("new_query")
                if isinstance(candidate, str):
                    new_query = candidate.strip()

        if not new_query or new_query == question.search_query:
            new_query = heuristic_reformulation(question)

        logger.debug(f"Reformulated '{question.search_query}' -> '{new_query}'")
        return dataclasses.replace(question, search_query=new_query)

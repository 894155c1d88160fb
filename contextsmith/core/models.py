"""Core data models for the context retrieval pipeline.

Search plans are decoded straight from model replies, so they are pydantic
models with lenient "before" validators that drop unusable entries instead of
rejecting the whole plan. Everything produced internally is a plain dataclass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SearchQuery(BaseModel):
    """A single search the planner wants to run against the codebase."""

    model_config = ConfigDict(extra="ignore")

    query: str = Field(description="Natural language or keyword query")
    kind: str | None = Field(
        default=None,
        description="Hint about the expected result (component, type, schema, api, ...)",
    )
    target_paths: list[str] = Field(
        default_factory=list,
        description="Directories or path prefixes believed to be relevant",
    )

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        """Reject blank queries."""
        v = v.strip()
        if not v:
            raise ValueError("Search query cannot be empty")
        return v

    @field_validator("target_paths", mode="before")
    @classmethod
    def coerce_target_paths(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return v

    def describe(self) -> str:
        """One-line rendering used inside prompts."""
        return f"- {self.query} ({self.kind or 'any'})"


def _keep_valid_queries(v: Any) -> Any:
    """Drop query entries that would fail validation (blank or malformed)."""
    if v is None:
        return []
    if not isinstance(v, list):
        return v

    kept: list[Any] = []
    for item in v:
        if isinstance(item, SearchQuery):
            kept.append(item)
        elif isinstance(item, str) and item.strip():
            kept.append({"query": item})
        elif isinstance(item, dict):
            query = item.get("query")
            if isinstance(query, str) and query.strip():
                kept.append(item)
    return kept


class WorkerPlan(BaseModel):
    """Plan for a single specialized worker."""

    model_config = ConfigDict(extra="ignore")

    worker_id: str
    description: str = ""
    queries: list[SearchQuery] = Field(default_factory=list)

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("queries", mode="before")
    @classmethod
    def drop_blank_queries(cls, v: Any) -> Any:
        return _keep_valid_queries(v)


class SearchPlan(BaseModel):
    """Planner output: intent label, general queries, worker plans, schedule.

    ``execution_schedule`` is always computed by the planner from
    ``workers``; anything a model puts there is overwritten.
    """

    model_config = ConfigDict(extra="ignore")

    global_intent: str = ""
    search_queries: list[SearchQuery] = Field(default_factory=list)
    workers: list[WorkerPlan] = Field(default_factory=list)
    execution_schedule: list[str] = Field(default_factory=list)

    @field_validator("global_intent", mode="before")
    @classmethod
    def coerce_intent(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("search_queries", mode="before")
    @classmethod
    def drop_blank_queries(cls, v: Any) -> Any:
        return _keep_valid_queries(v)

    @field_validator("workers", mode="before")
    @classmethod
    def drop_anonymous_workers(cls, v: Any) -> Any:
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        return [
            w
            for w in v
            if isinstance(w, WorkerPlan)
            or (
                isinstance(w, dict)
                and isinstance(w.get("worker_id"), str)
                and w["worker_id"].strip()
            )
        ]

    @property
    def worker_ids(self) -> list[str]:
        return [w.worker_id for w in self.workers]

    def is_empty(self) -> bool:
        """True when the plan carries no intent, no queries and no workers."""
        return (
            not self.global_intent.strip()
            and not self.search_queries
            and not self.workers
        )

    def all_query_strings(self) -> list[str]:
        """Flatten general and per-worker queries into plain strings."""
        out = [q.query for q in self.search_queries]
        for worker in self.workers:
            out.extend(q.query for q in worker.queries)
        return out

    def get_worker(self, worker_id: str) -> WorkerPlan | None:
        for worker in self.workers:
            if worker.worker_id == worker_id:
                return worker
        return None


class Priority(str, Enum):
    """Importance of a critical question."""

    CRITICAL = "critical"  # must find
    HIGH = "high"  # should find
    MEDIUM = "medium"  # nice to have

    @classmethod
    def parse(cls, value: Any) -> Priority:
        """Parse a model-supplied priority; unknown values map to MEDIUM."""
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.MEDIUM


@dataclass(frozen=True)
class CriticalQuestion:
    """A specific factual lookup ("is there a Button component?")."""

    question: str
    search_query: str
    expected_type: str = "unknown"
    priority: Priority = Priority.MEDIUM


@dataclass
class SymbolMatch:
    """A symbol returned by a search backend."""

    name: str
    kind: str
    file_path: str
    content: str = ""
    start_line: int = 0
    end_line: int = 0
    score: float = 0.0

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.file_path)

    def summary(self) -> str:
        return f"- {self.name} ({self.kind}) in {self.file_path}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SymbolMatch:
        return cls(
            name=str(data.get("name", "")),
            kind=str(data.get("kind", "unknown")),
            file_path=str(data.get("file_path") or data.get("path") or ""),
            content=str(data.get("content", "")),
            start_line=int(data.get("start_line", 0) or 0),
            end_line=int(data.get("end_line", 0) or 0),
            score=float(data.get("score", 0.0) or 0.0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "file_path": self.file_path,
            "content": self.content,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "score": self.score,
        }


@dataclass
class VerificationResult:
    """LLM judgement of whether search results answer a question."""

    is_correct: bool
    reason: str
    suggestion: str | None = None


@dataclass
class QuestionAnswer:
    """Symbols that answer a critical question, with confidence in [0, 1]."""

    question: str
    symbols: list[SymbolMatch]
    confidence: float


class QuestionStatus(str, Enum):
    FOUND = "found"
    PARTIALLY_FOUND = "partially_found"
    NOT_FOUND = "not_found"


@dataclass
class QuestionOutcome:
    """Terminal state of the search/verify/reformulate loop for one question."""

    status: QuestionStatus
    answers: list[QuestionAnswer] = field(default_factory=list)
    attempts: int = 0
    final_query: str = ""

    @classmethod
    def not_found(cls, attempts: int, final_query: str) -> QuestionOutcome:
        return cls(
            status=QuestionStatus.NOT_FOUND,
            attempts=attempts,
            final_query=final_query,
        )


@dataclass
class Chunk:
    """A normalized unit of retrieved code or analysis with provenance."""

    id: str
    content: str
    file_path: str
    language: str = "unknown"
    kind: str = "unknown"
    start_line: int = 0
    end_line: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_fallback(self) -> bool:
        return bool(self.metadata.get("fallback", False))


@dataclass
class WorkerResult:
    """Output of running one worker."""

    worker_id: str
    chunks: list[Chunk]
    summary: str
    confidence: float

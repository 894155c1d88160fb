"""Service layer for ContextSmith - planning, retrieval and context assembly."""

from .question_loop import QuestionLoop
from .resilient_caller import ResilientCaller
from .retrieval_pipeline import ContextRetrievalPipeline, PipelineResult
from .task_planner import TaskPlanner, build_execution_plan
from .worker_executor import WorkerExecutor
from .worker_registry import WorkerSpec, WorkerSpecRegistry

__all__ = [
    "ContextRetrievalPipeline",
    "PipelineResult",
    "QuestionLoop",
    "ResilientCaller",
    "TaskPlanner",
    "WorkerExecutor",
    "WorkerSpec",
    "WorkerSpecRegistry",
    "build_execution_plan",
]

"""Task planner: turns a user task into a dependency-ordered search plan.

Planning never fails. A classification problem degrades to the "feature"
task type, and an unusable planning reply degrades to a fallback plan built
from the static recommendation table.
"""

from loguru import logger
from pydantic import ValidationError

from contextsmith.core.exceptions import BackendCallError
from contextsmith.core.models import SearchPlan, SearchQuery, WorkerPlan
from contextsmith.core.utils import Malformed, decode_json_object
from contextsmith.interfaces.llm_provider import Message
from contextsmith.interfaces.project_descriptor import ProjectDescriptor
from contextsmith.services import prompts
from contextsmith.services.resilient_caller import ResilientCaller
from contextsmith.services.worker_registry import WorkerSpecRegistry

DEFAULT_TASK_TYPE = "feature"
FALLBACK_INTENT = "fallback_plan"
FALLBACK_MAX_WORKERS = 3


def build_execution_plan(
    worker_ids: list[str], registry: WorkerSpecRegistry
) -> list[str]:
    """Order worker ids so that dependencies run first.

    Cycle tolerant: when a pass makes no progress, the remainder is appended
    in its current order. Only ids in this batch can satisfy a dependency.
    Ids unknown to the registry are emitted as soon as they are reached.

    Returns:
        A permutation of ``worker_ids``
    """
    order: list[str] = []
    processed: set[str] = set()
    remaining = list(worker_ids)

    while remaining:
        still_waiting: list[str] = []
        for worker_id in remaining:
            spec = registry.get(worker_id)
            if spec is None or spec.dependencies <= processed:
                order.append(worker_id)
                processed.add(worker_id)
            else:
                still_waiting.append(worker_id)

        if len(still_waiting) == len(remaining):
            logger.debug(
                f"Unresolvable worker dependencies, appending as-is: {still_waiting}"
            )
            order.extend(still_waiting)
            break
        remaining = still_waiting

    return order


class TaskPlanner:
    """LLM-backed planner selecting workers and queries for a task."""

    def __init__(self, caller: ResilientCaller, registry: WorkerSpecRegistry):
        self._caller = caller
        self._registry = registry

    @property
    def registry(self) -> WorkerSpecRegistry:
        return self._registry

    async def classify_task(self, user_task: str, project: ProjectDescriptor) -> str:
        """Return the task type label; "feature" whenever classification fails."""
        classifier = self._registry.get("task_classifier")
        if classifier is None:
            logger.debug("No task_classifier worker registered, using default task type")
            return DEFAULT_TASK_TYPE

        project_info = project.to_description()
        prompt = (
            classifier.template.replace("{user_prompt}", user_task)
            .replace("{project_info}", project_info)
            .replace("{project_stack}", project_info)
        )
        messages = [
            Message.system(prompts.TASK_CLASSIFIER_SYSTEM),
            Message.user(prompt),
        ]

        try:
            reply = await self._caller.generate_with_context(messages)
        except BackendCallError as e:
            logger.warning(f"Task classification unavailable, assuming feature: {e}")
            return DEFAULT_TASK_TYPE

        decoded = decode_json_object(reply)
        if isinstance(decoded, Malformed):
            logger.debug(f"Undecodable classification reply ({decoded.error})")
            return DEFAULT_TASK_TYPE

        task_type = decoded.value.get("task_type")
        if isinstance(task_type, str) and task_type.strip():
            return task_type.strip().lower()
        return DEFAULT_TASK_TYPE

    async def plan(self, user_task: str, project: ProjectDescriptor) -> SearchPlan:
        """Build a SearchPlan whose execution_schedule respects worker dependencies."""
        task_type = await self.classify_task(user_task, project)
        recommended = self._registry.recommended_for(task_type)
        logger.info(f"Task classified as '{task_type}', recommended: {recommended}")

        plan = await self._request_plan(user_task, project, recommended)
        if plan is None:
            plan = self.fallback_plan(user_task, recommended)

        plan.execution_schedule = build_execution_plan(plan.worker_ids, self._registry)
        logger.info(
            f"Plan '{plan.global_intent}': {len(plan.search_queries)} queries, "
            f"schedule {plan.execution_schedule}"
        )
        return plan

    async def _request_plan(
        self, user_task: str, project: ProjectDescriptor, recommended: list[str]
    ) -> SearchPlan | None:
        worker_lines = [f"- {s.key}: {s.description}" for s in self._registry.all()]
        messages = [
            Message.system(prompts.build_planner_system_prompt(worker_lines)),
            Message.user(
                prompts.build_planner_user_prompt(
                    user_task, project.to_description(), recommended
                )
            ),
        ]

        try:
            reply = await self._caller.generate_with_context(messages)
        except BackendCallError as e:
            logger.warning(f"Planner unavailable, using fallback plan: {e}")
            return None

        decoded = decode_json_object(reply)
        if isinstance(decoded, Malformed):
            logger.warning(
                f"Undecodable plan reply ({decoded.error}), using fallback plan"
            )
            return None

        data = dict(decoded.value)
        # The schedule is always derived here, never taken from the reply
        data.pop("execution_schedule", None)
        data.pop("execution_plan", None)
        try:
            plan = SearchPlan.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Plan reply has the wrong shape, using fallback plan: {e}")
            return None

        if plan.is_empty():
            logger.warning("Planner returned an empty plan, using fallback plan")
            return None
        return plan

    def fallback_plan(self, user_task: str, recommended: list[str]) -> SearchPlan:
        """Plan that searches for the raw task with the first recommended workers."""
        # Built without validation so the query is the task verbatim
        queries = (
            [SearchQuery.model_construct(query=user_task, kind="any")]
            if user_task.strip()
            else []
        )
        workers = []
        for key in recommended[:FALLBACK_MAX_WORKERS]:
            spec = self._registry.get(key)
            if spec is None:
                continue
            workers.append(
                WorkerPlan(
                    worker_id=key,
                    description=spec.description,
                    queries=[q.model_copy() for q in queries],
                )
            )
        return SearchPlan(
            global_intent=FALLBACK_INTENT,
            search_queries=queries,
            workers=workers,
        )

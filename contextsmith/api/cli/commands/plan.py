"""Plan command module - shows how a task would be searched."""

import argparse

from loguru import logger

from contextsmith.core.config.config import Config
from contextsmith.services.task_planner import TaskPlanner
from contextsmith.services.worker_registry import WorkerSpecRegistry

from ..utils.project import create_llm_manager, project_from_args
from ..utils.rich_output import RichOutputFormatter


async def plan_command(args: argparse.Namespace, config: Config) -> None:
    """Execute the plan command.

    Args:
        args: Parsed command-line arguments
        config: Pre-validated configuration instance
    """
    formatter = RichOutputFormatter(verbose=args.verbose)
    project = project_from_args(args)
    manager = create_llm_manager(config)

    planner = TaskPlanner(manager.get_caller(), WorkerSpecRegistry.default())
    plan = await planner.plan(args.task, project)
    logger.debug(f"LLM usage: {manager.get_usage_stats()}")

    if args.json:
        formatter.json_output(plan.model_dump())
        return

    formatter.verbose_info(f"LLM usage: {manager.get_usage_stats()}")
    formatter.section_header("ContextSmith Search Plan")
    formatter.box_section(
        "Plan",
        [
            ("Intent", plan.global_intent or "-"),
            ("Project", project.to_description() or "-"),
            ("Schedule", " -> ".join(plan.execution_schedule) or "-"),
        ],
    )

    if plan.search_queries:
        formatter.info("General queries:")
        formatter.bullet_list([f"{q.query} ({q.kind or 'any'})" for q in plan.search_queries])

    formatter.rows_table(
        "Workers",
        ["Worker", "Focus", "Queries"],
        [
            [w.worker_id, w.description, str(len(w.queries))]
            for w in plan.workers
        ],
    )

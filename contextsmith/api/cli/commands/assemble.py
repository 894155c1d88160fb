"""Assemble command module - runs the full retrieval pipeline."""

import argparse
from typing import Any

from loguru import logger

from contextsmith.core.config.config import Config
from contextsmith.providers.search.in_memory import InMemorySearchBackend
from contextsmith.services.context.models import BUCKETS
from contextsmith.services.retrieval_pipeline import (
    ContextRetrievalPipeline,
    PipelineResult,
)
from contextsmith.services.worker_registry import WorkerSpecRegistry

from ..utils.project import create_llm_manager, project_from_args
from ..utils.rich_output import RichOutputFormatter


def result_to_dict(result: PipelineResult) -> dict[str, Any]:
    """JSON-ready view of a pipeline run."""
    report = result.prune_report
    return {
        "plan": result.plan.model_dump(),
        "context": result.context.to_dict(),
        "answers": [
            {
                "question": a.question,
                "confidence": a.confidence,
                "symbols": [s.to_dict() for s in a.symbols],
            }
            for a in result.answers
        ],
        "workers": [
            {
                "worker_id": r.worker_id,
                "summary": r.summary,
                "confidence": r.confidence,
                "chunks": len(r.chunks),
            }
            for r in result.worker_results
        ],
        "prune": {
            "budget": report.budget,
            "initial_tokens": report.initial_tokens,
            "final_tokens": report.final_tokens,
            "tiers_applied": report.tiers_applied,
        }
        if report
        else None,
        "audit": {
            name: {"status": o.status.value, "before": o.before, "after": o.after}
            for name, o in result.audit.items()
        },
        "stats": result.stats,
    }


async def assemble_command(args: argparse.Namespace, config: Config) -> None:
    """Execute the assemble command.

    Args:
        args: Parsed command-line arguments
        config: Pre-validated configuration instance
    """
    formatter = RichOutputFormatter(verbose=args.verbose)

    search = InMemorySearchBackend.from_file(args.symbols)
    project = project_from_args(args)
    manager = create_llm_manager(config)

    pipeline = ContextRetrievalPipeline(
        manager.get_caller(),
        search,
        registry=WorkerSpecRegistry.default(),
        config=config.pipeline,
    )

    if not args.json:
        formatter.progress_indicator(f"Assembling context from {len(search)} symbols...")

    result = await pipeline.run(args.task, project)
    logger.debug(f"LLM usage: {manager.get_usage_stats()}")

    if args.json:
        formatter.json_output(result_to_dict(result))
        return

    formatter.verbose_info(f"LLM usage: {manager.get_usage_stats()}")
    formatter.section_header("ContextSmith Context")
    counts = result.context.counts()
    formatter.rows_table(
        "Buckets",
        ["Bucket", "Items"],
        [[name, str(counts[name])] for name in BUCKETS],
    )

    for name in BUCKETS:
        items = result.context.bucket(name)
        if items:
            formatter.info(f"{name}:")
            formatter.bullet_list([f"{item.name} ({item.file_path})" for item in items])

    stats = result.stats
    if stats.get("skipped_workers"):
        formatter.warning(
            f"Skipped unregistered workers: {', '.join(stats['skipped_workers'])}"
        )
    if stats.get("failed_workers"):
        formatter.warning(f"Failed workers: {', '.join(stats['failed_workers'])}")

    formatter.box_section(
        "Summary",
        [
            ("Intent", result.plan.global_intent),
            ("Answers", str(len(result.answers))),
            ("Tokens", f"~{stats.get('final_tokens', 0)} / {config.pipeline.token_budget}"),
        ],
    )
    formatter.success("Context assembled")

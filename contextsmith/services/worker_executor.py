"""Runs one specialized worker and normalizes its reply into chunks."""

from typing import Any

from loguru import logger

from contextsmith.core.exceptions import ConfigError
from contextsmith.core.models import Chunk, SearchQuery, WorkerResult
from contextsmith.core.utils import Malformed, decode_json_array
from contextsmith.interfaces.llm_provider import Message
from contextsmith.services.resilient_caller import ResilientCaller
from contextsmith.services.worker_registry import WorkerSpec, WorkerSpecRegistry

# Fixed until confidence is derived from reply quality
WORKER_CONFIDENCE = 0.8

# Placeholders reserved for inputs the pipeline does not collect yet
RESERVED_PLACEHOLDERS = (
    "{file_path}",
    "{error_message}",
    "{file_list}",
    "{package_managers}",
    "{config_files}",
)


def render_worker_prompt(
    spec: WorkerSpec,
    user_task: str,
    project_description: str,
    queries: list[SearchQuery] | None = None,
) -> str:
    """Fill a worker template and append the planned queries."""
    prompt = (
        spec.template.replace("{user_prompt}", user_task)
        .replace("{project_info}", project_description)
        .replace("{project_stack}", project_description)
    )
    for placeholder in RESERVED_PLACEHOLDERS:
        prompt = prompt.replace(placeholder, "")

    if queries:
        bullets = "\n".join(q.describe() for q in queries)
        prompt = f"{prompt}\n\nPlanned search queries:\n{bullets}"
    return prompt


def _first_str(item: dict[str, Any], *keys: str, default: str = "") -> str:
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value:
            return value
    return default


class WorkerExecutor:
    """Executes WorkerSpecs through the resilient caller."""

    def __init__(self, caller: ResilientCaller, registry: WorkerSpecRegistry):
        self._caller = caller
        self._registry = registry

    async def execute(
        self,
        worker_key: str,
        user_task: str,
        project_description: str,
        queries: list[SearchQuery] | None = None,
    ) -> WorkerResult:
        """Run a worker.

        Raises:
            ConfigError: If worker_key is not registered
            BackendCallError: If the text-generation backend is exhausted
        """
        spec = self._registry.get(worker_key)
        if spec is None:
            raise ConfigError(f"Unknown worker: {worker_key}")

        prompt = render_worker_prompt(spec, user_task, project_description, queries)
        messages = [
            Message.system(f"You are a {spec.description}."),
            Message.user(prompt),
        ]

        logger.debug(f"Executing worker {worker_key}")
        reply = await self._caller.generate_with_context(messages)
        chunks = self.parse_reply(worker_key, reply)
        logger.debug(f"Worker {worker_key} produced {len(chunks)} chunks")

        return WorkerResult(
            worker_id=worker_key,
            chunks=chunks,
            summary=f"Executed {worker_key} worker",
            confidence=WORKER_CONFIDENCE,
        )

    @staticmethod
    def parse_reply(worker_key: str, reply: str) -> list[Chunk]:
        """One chunk per object in a JSON array reply, else a single fallback chunk."""
        decoded = decode_json_array(reply)
        if isinstance(decoded, Malformed):
            logger.debug(
                f"Worker {worker_key} reply is not a JSON array ({decoded.error}), "
                "keeping it as analysis text"
            )
            return [
                Chunk(
                    id=f"{worker_key}-fallback",
                    content=reply,
                    file_path=f"{worker_key}_analysis.txt",
                    language="text",
                    kind="analysis",
                    metadata={"worker": worker_key, "fallback": True},
                )
            ]

        chunks: list[Chunk] = []
        for item in decoded.value:
            if not isinstance(item, dict):
                continue
            metadata = {
                "worker": worker_key,
                "description": _first_str(item, "description"),
            }
            name = _first_str(item, "name", "symbol")
            if name:
                metadata["name"] = name
            chunks.append(
                Chunk(
                    id=f"{worker_key}-{len(chunks)}",
                    content=_first_str(item, "content", "definition"),
                    file_path=_first_str(item, "file_path", "path"),
                    language=_first_str(item, "language", default="unknown"),
                    kind=_first_str(item, "kind", "type", default="unknown"),
                    metadata=metadata,
                )
            )
        return chunks

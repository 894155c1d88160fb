"""Model-backed selection of the essential items in crowded categories.

The auditor only engages when the context is large overall and, per
category, when that category itself is crowded. It never empties a category
because of a model quirk: an empty or unusable selection leaves the category
unchanged, and failures are contained to the category they happened in.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger

from contextsmith.core.constants import (
    AUDIT_CATEGORY_THRESHOLD,
    AUDIT_GLOBAL_THRESHOLD,
    AUDIT_PREVIEW_CHARS,
)
from contextsmith.core.utils import Malformed, decode_json_object
from contextsmith.interfaces.llm_provider import Message
from contextsmith.services import prompts
from contextsmith.services.resilient_caller import ResilientCaller

from .models import ContextData

AUDITED_BUCKETS = ("relevant_symbols", "similar_symbols", "types", "schemas")


class AuditStatus(str, Enum):
    OK = "ok"  # pruned as instructed
    UNCHANGED = "unchanged"  # model expressed no usable opinion
    SKIPPED = "skipped"  # gate not met
    ERROR = "error"  # failure swallowed, category untouched


@dataclass
class AuditOutcome:
    status: AuditStatus
    before: int
    after: int
    detail: str = ""

    @property
    def removed(self) -> int:
        return self.before - self.after


def truncate_preview(content: str, max_chars: int) -> str:
    if len(content) <= max_chars:
        return content
    return content[:max_chars] + "…"


def resolve_keep_indices(raw: Any, size: int) -> list[int]:
    """Valid, in-range indices in returned order, each kept once."""
    if not isinstance(raw, list):
        return []
    seen: set[int] = set()
    indices: list[int] = []
    for value in raw:
        if isinstance(value, bool) or not isinstance(value, int):
            continue
        if 0 <= value < size and value not in seen:
            seen.add(value)
            indices.append(value)
    return indices


class ContextAuditor:
    """Asks the model which items in each crowded category to keep."""

    def __init__(
        self,
        caller: ResilientCaller,
        global_threshold: int = AUDIT_GLOBAL_THRESHOLD,
        category_threshold: int = AUDIT_CATEGORY_THRESHOLD,
        preview_chars: int = AUDIT_PREVIEW_CHARS,
    ):
        self._caller = caller
        self._global_threshold = global_threshold
        self._category_threshold = category_threshold
        self._preview_chars = preview_chars

    async def audit(
        self, user_task: str, context: ContextData
    ) -> dict[str, AuditOutcome]:
        """Audit categories in place and report what happened to each."""
        total = sum(len(context.bucket(name)) for name in AUDITED_BUCKETS)
        if total <= self._global_threshold:
            logger.debug(
                f"Audit skipped: {total} items <= threshold {self._global_threshold}"
            )
            counts = {name: len(context.bucket(name)) for name in AUDITED_BUCKETS}
            return {
                name: AuditOutcome(AuditStatus.SKIPPED, n, n)
                for name, n in counts.items()
            }

        outcomes: dict[str, AuditOutcome] = {}
        for name in AUDITED_BUCKETS:
            size = len(context.bucket(name))
            try:
                outcomes[name] = await self._audit_category(user_task, name, context)
            except Exception as e:
                logger.warning(f"Audit of {name} failed, leaving it unchanged: {e}")
                outcomes[name] = AuditOutcome(AuditStatus.ERROR, size, size, str(e))
        return outcomes

    async def _audit_category(
        self, user_task: str, name: str, context: ContextData
    ) -> AuditOutcome:
        items = context.bucket(name)
        size = len(items)
        if size <= self._category_threshold:
            return AuditOutcome(AuditStatus.SKIPPED, size, size)

        summaries = [
            {
                "index": idx,
                "name": item.name,
                "kind": item.kind,
                "file_path": item.file_path,
                "preview": truncate_preview(item.text, self._preview_chars),
            }
            for idx, item in enumerate(items)
        ]
        messages = [
            Message.system(prompts.AUDITOR_SYSTEM),
            Message.user(prompts.build_audit_user_prompt(user_task, name, summaries)),
        ]
        reply = await self._caller.generate_with_context(messages)

        decoded = decode_json_object(reply)
        if isinstance(decoded, Malformed):
            logger.warning(f"Undecodable audit reply for {name} ({decoded.error})")
            return AuditOutcome(AuditStatus.ERROR, size, size, decoded.error)

        keep = resolve_keep_indices(decoded.value.get("keep_indices"), size)
        if not keep:
            return AuditOutcome(AuditStatus.UNCHANGED, size, size, "no usable selection")

        context.set_bucket(name, [items[i] for i in keep])
        logger.info(f"Audit kept {len(keep)}/{size} items in {name}")
        return AuditOutcome(AuditStatus.OK, size, len(keep))

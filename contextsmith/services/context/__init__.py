"""Context assembly: the data being shrunk and the three shrink stages."""

from .budget_pruner import BudgetPruner, PruneReport
from .context_auditor import AuditOutcome, AuditStatus, ContextAuditor
from .deduplicator import Deduplicator
from .models import (
    BUCKETS,
    ConstantItem,
    ContextData,
    DesignTokenItem,
    SchemaItem,
    SymbolItem,
    TypeItem,
)

__all__ = [
    "BUCKETS",
    "AuditOutcome",
    "AuditStatus",
    "BudgetPruner",
    "ConstantItem",
    "ContextAuditor",
    "ContextData",
    "Deduplicator",
    "DesignTokenItem",
    "PruneReport",
    "SchemaItem",
    "SymbolItem",
    "TypeItem",
]

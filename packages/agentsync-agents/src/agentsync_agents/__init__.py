"""agentsync agents: definition discovery, registry, and reconciliation."""
from __future__ import annotations

from agentsync_agents.autosync import needs_sync
from agentsync_agents.definitions import (
    Definition,
    DefinitionLoader,
    DefinitionValidator,
    Diagnostic,
    DiagnosticKind,
    Scope,
    SourceLayout,
)
from agentsync_agents.executor import ExecutionSummary, FailedAction, PlanExecutor
from agentsync_agents.ignore import GitignoreMatcher, IgnoreMatcher, NullIgnoreMatcher
from agentsync_agents.layout import LayoutMigrationReport, LayoutMigrator
from agentsync_agents.migration import (
    MigrationOutcome,
    MigrationResult,
    NameMigrationTable,
)
from agentsync_agents.paths import ScopePaths
from agentsync_agents.plan import ActionKind, PlanAction, ReconciliationPlan
from agentsync_agents.reconcile import ReconciliationEngine
from agentsync_agents.registry import Registry, RegistryDocument, RegistryEntry

__all__ = [
    "ActionKind",
    "Definition",
    "DefinitionLoader",
    "DefinitionValidator",
    "Diagnostic",
    "DiagnosticKind",
    "ExecutionSummary",
    "FailedAction",
    "GitignoreMatcher",
    "IgnoreMatcher",
    "LayoutMigrationReport",
    "LayoutMigrator",
    "MigrationOutcome",
    "MigrationResult",
    "NameMigrationTable",
    "NullIgnoreMatcher",
    "PlanAction",
    "PlanExecutor",
    "ReconciliationEngine",
    "ReconciliationPlan",
    "Registry",
    "RegistryDocument",
    "RegistryEntry",
    "Scope",
    "ScopePaths",
    "SourceLayout",
    "needs_sync",
]

"""Apply a reconciliation plan to the filesystem and the registry."""
from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from agentsync_core.errors import ActionFailedError, AgentsyncError
from agentsync_core.logging import get_logger

from agentsync_agents.definitions.types import Scope
from agentsync_agents.plan import ActionKind
from agentsync_agents.registry import Registry, RegistryDocument, RegistryEntry

if TYPE_CHECKING:
    from pathlib import Path

    from agentsync_agents.paths import ScopePaths
    from agentsync_agents.plan import PlanAction, ReconciliationPlan

logger = get_logger("agents.executor")


@dataclass(frozen=True, slots=True)
class FailedAction:
    identifier: str
    kind: ActionKind
    reason: str


@dataclass(slots=True)
class ExecutionSummary:
    """What a plan execution did, by identifier."""

    registered: list[str] = field(default_factory=list)
    copied: list[str] = field(default_factory=list)
    renamed: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[FailedAction] = field(default_factory=list)
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def changed(self) -> int:
        return len(self.registered) + len(self.copied) + len(self.renamed) + len(self.removed)


class PlanExecutor:
    """Executes plan actions in order, isolating per-action failures.

    Registry documents are loaded once per scope, mutated in memory as
    actions succeed, and saved once per touched scope after the last
    action.  A registry read or write failure is not isolated: it
    propagates as :class:`~agentsync_core.errors.RegistryIOError`.
    """

    def __init__(self, paths: ScopePaths, registry: Registry | None = None) -> None:
        self._paths = paths
        self._registry = registry or Registry(paths)

    def execute(self, plan: ReconciliationPlan, *, dry_run: bool = False) -> ExecutionSummary:
        summary = ExecutionSummary(dry_run=dry_run)
        documents: dict[Scope, RegistryDocument] = {}
        touched: set[Scope] = set()

        def document(scope: Scope) -> RegistryDocument:
            if scope not in documents:
                documents[scope] = self._registry.load(scope)
            return documents[scope]

        for action in plan.actions:
            if action.kind is ActionKind.SKIP:
                summary.skipped.append(action.identifier)
                continue

            # Load before the try block so registry errors stay fatal.
            doc = document(action.scope)
            try:
                self._apply(action, doc, dry_run=dry_run)
            except (OSError, AgentsyncError) as exc:
                reason = str(exc)
                logger.warning(
                    "%s %s failed: %s",
                    action.kind.value,
                    action.identifier,
                    reason,
                    extra={"scope": action.scope.value, "identifier": action.identifier},
                )
                summary.failed.append(FailedAction(action.identifier, action.kind, reason))
                continue

            touched.add(action.scope)
            _record(summary, action)

        if not dry_run:
            for scope in sorted(touched, key=lambda s: s.value):
                self._registry.save(scope, documents[scope])

        logger.info(
            "Executed plan: %d registered, %d copied, %d renamed, %d removed, "
            "%d skipped, %d failed%s",
            len(summary.registered),
            len(summary.copied),
            len(summary.renamed),
            len(summary.removed),
            len(summary.skipped),
            len(summary.failed),
            " (dry run)" if dry_run else "",
        )
        return summary

    # ── Actions ──────────────────────────────────────────────────────

    def _apply(self, action: PlanAction, doc: RegistryDocument, *, dry_run: bool) -> None:
        if action.kind is ActionKind.REGISTER:
            self._register(action, doc, action.identifier, dry_run=dry_run)
        elif action.kind is ActionKind.COPY_TO_PROJECT:
            self._copy_to_project(action, doc, dry_run=dry_run)
        elif action.kind is ActionKind.RENAME:
            self._rename(action, doc, dry_run=dry_run)
        elif action.kind is ActionKind.REMOVE:
            self._remove(action, doc, dry_run=dry_run)
        else:
            msg = f"Unsupported action: {action.kind.value}"
            raise ActionFailedError(msg)

    def _register(
        self,
        action: PlanAction,
        doc: RegistryDocument,
        identifier: str,
        *,
        dry_run: bool,
    ) -> None:
        if action.definition is None:
            msg = f"No definition loaded for '{action.identifier}'"
            raise ActionFailedError(msg)
        if dry_run:
            return
        doc.upsert(identifier, RegistryEntry.for_definition(action.definition, action.scope))
        logger.debug("Registered %s in %s scope", identifier, action.scope.value)

    def _copy_to_project(self, action: PlanAction, doc: RegistryDocument, *, dry_run: bool) -> None:
        if action.definition is None:
            msg = f"No definition loaded for '{action.identifier}'"
            raise ActionFailedError(msg)
        target = self._paths.single_file_path(Scope.PROJECT, action.identifier)
        if dry_run:
            return
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(action.definition.raw_text, encoding="utf-8")
        doc.upsert(
            action.identifier,
            RegistryEntry.for_definition(action.definition, Scope.PROJECT),
        )
        logger.debug("Copied %s to %s", action.identifier, target)

    def _rename(self, action: PlanAction, doc: RegistryDocument, *, dry_run: bool) -> None:
        if action.target is None or action.definition is None:
            msg = f"Rename of '{action.identifier}' has no target"
            raise ActionFailedError(msg)
        target = self._paths.single_file_path(action.scope, action.target)
        if target.exists():
            msg = f"Cannot rename '{action.identifier}': {target} already exists"
            raise ActionFailedError(msg)
        if dry_run:
            return

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(action.definition.raw_text, encoding="utf-8")
        if action.source_path is not None:
            _delete(action.source_path)
        doc.remove(action.identifier)
        self._register(action, doc, action.target, dry_run=False)
        logger.debug("Renamed %s to %s", action.identifier, action.target)

    def _remove(self, action: PlanAction, doc: RegistryDocument, *, dry_run: bool) -> None:
        if dry_run:
            return
        if action.source_path is not None:
            _delete(action.source_path)
        doc.remove(action.identifier)
        logger.debug("Removed %s from %s scope", action.identifier, action.scope.value)


def _delete(path: Path) -> None:
    if path.is_dir():
        shutil.rmtree(path)
    elif path.exists():
        path.unlink()


def _record(summary: ExecutionSummary, action: PlanAction) -> None:
    if action.kind is ActionKind.REGISTER:
        summary.registered.append(action.identifier)
    elif action.kind is ActionKind.COPY_TO_PROJECT:
        summary.copied.append(action.identifier)
    elif action.kind is ActionKind.RENAME:
        summary.renamed.append(action.identifier)
    elif action.kind is ActionKind.REMOVE:
        summary.removed.append(action.identifier)

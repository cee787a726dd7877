"""Reconciliation: compare on-disk definitions with the registry and plan actions.

A scan never mutates anything.  It loads every candidate in the user
scope and then the project scope (each in identifier order), consults
both registry documents and the name migration table, and returns a
:class:`ReconciliationPlan`.  :meth:`ReconciliationEngine.execute` hands
the plan to :class:`~agentsync_agents.executor.PlanExecutor`.

Per-file load failures become diagnostics.  Registry read failures
propagate.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from agentsync_core.errors import ScanCancelledError
from agentsync_core.logging import get_logger

from agentsync_agents.definitions.loader import DefinitionLoader
from agentsync_agents.definitions.types import Diagnostic, DiagnosticKind, Scope
from agentsync_agents.executor import PlanExecutor
from agentsync_agents.ignore import NullIgnoreMatcher
from agentsync_agents.migration import MigrationOutcome, NameMigrationTable
from agentsync_agents.plan import ActionKind, PlanAction, ReconciliationPlan
from agentsync_agents.registry import Registry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

    from agentsync_agents.definitions.types import Definition
    from agentsync_agents.executor import ExecutionSummary
    from agentsync_agents.ignore import IgnoreMatcher
    from agentsync_agents.paths import ScopePaths
    from agentsync_agents.registry import RegistryDocument

logger = get_logger("agents.reconcile")

SCOPE_ORDER: tuple[Scope, ...] = (Scope.USER, Scope.PROJECT)

__all__ = [
    "SCOPE_ORDER",
    "ActionKind",
    "PlanAction",
    "ReconciliationEngine",
    "ReconciliationPlan",
]

class ReconciliationEngine:
    """Scans both scopes and plans how to bring the registry in line.

    Decisions per candidate, in order:

    1. already registered in its own scope: ``SKIP``
    2. deprecated and renamed: ``REMOVE`` when the successor is registered
       or present on disk, otherwise ``RENAME`` to the successor
    3. deprecated with no replacement: ``REMOVE``
    4. present and unregistered in both scopes: the user copy is ``SKIP``
       and the project copy wins
    5. otherwise ``REGISTER`` in its own scope, plus ``COPY_TO_PROJECT``
       for user definitions when eager copying is requested
    """

    def __init__(
        self,
        paths: ScopePaths,
        registry: Registry | None = None,
        loader: DefinitionLoader | None = None,
        migrations: NameMigrationTable | None = None,
        ignore: IgnoreMatcher | None = None,
    ) -> None:
        self._paths = paths
        self._registry = registry or Registry(paths)
        self._loader = loader or DefinitionLoader()
        self._migrations = migrations or NameMigrationTable()
        self._ignore: IgnoreMatcher = ignore or NullIgnoreMatcher()
        self._diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def migrations(self) -> NameMigrationTable:
        return self._migrations

    def diagnostics(self) -> tuple[Diagnostic, ...]:
        """Diagnostics recorded by the most recent scan."""
        return self._diagnostics

    def scan(
        self,
        scopes: Iterable[Scope] = SCOPE_ORDER,
        *,
        eager_copy: bool = False,
        should_cancel: Callable[[], bool] | None = None,
    ) -> ReconciliationPlan:
        """Discover candidates in *scopes* and plan their reconciliation.

        Args:
            scopes: Scopes to scan.  They are always visited user first.
            eager_copy: Also plan a copy of each newly registered user
                definition into the project scope.
            should_cancel: Polled once per candidate; a true result
                raises :class:`ScanCancelledError`.

        Raises:
            RegistryIOError: If either registry document cannot be read.
            ScanCancelledError: If *should_cancel* asked to stop.
        """
        requested = set(scopes)
        ordered = [scope for scope in SCOPE_ORDER if scope in requested]
        diagnostics: list[Diagnostic] = []

        discovered: dict[Scope, list[Definition]] = {scope: [] for scope in SCOPE_ORDER}
        for scope in ordered:
            discovered[scope] = self._discover(scope, diagnostics, should_cancel)

        documents: dict[Scope, RegistryDocument] = {
            scope: self._registry.load(scope) for scope in SCOPE_ORDER
        }
        registered_anywhere = set(documents[Scope.USER].installed) | set(
            documents[Scope.PROJECT].installed
        )
        on_disk: dict[Scope, set[str]] = {
            scope: {d.identifier for d in defs} for scope, defs in discovered.items()
        }
        contested = {
            identifier
            for identifier in on_disk[Scope.USER] & on_disk[Scope.PROJECT]
            if identifier not in documents[Scope.USER]
            and identifier not in documents[Scope.PROJECT]
        }

        actions: list[PlanAction] = []
        for scope in ordered:
            for definition in discovered[scope]:
                actions.extend(
                    self._decide(
                        definition,
                        documents,
                        registered_anywhere,
                        on_disk,
                        contested,
                        diagnostics,
                        eager_copy=eager_copy,
                    )
                )

        self._diagnostics = tuple(diagnostics)
        plan = ReconciliationPlan(
            actions=tuple(actions),
            diagnostics=self._diagnostics,
            definitions=tuple(d for scope in ordered for d in discovered[scope]),
        )
        logger.info(
            "Scan planned %d action(s) for %d candidate(s), %d diagnostic(s)",
            sum(1 for a in plan.actions if a.actionable),
            len(plan.definitions),
            len(diagnostics),
        )
        return plan

    def cleanup_plan(self) -> ReconciliationPlan:
        """Plan removal of every deprecated identifier, registered or on disk."""
        actions: list[PlanAction] = []
        for scope in SCOPE_ORDER:
            document = self._registry.load(scope)
            paths_by_id: dict[str, Path] = {}
            for candidate in self._loader.candidates(self._paths.agents_dir(scope)):
                paths_by_id.setdefault(candidate.identifier, candidate.path)

            deprecated = {
                identifier
                for identifier in set(paths_by_id) | set(document.installed)
                if self._migrations.is_deprecated(identifier)
            }
            for identifier in sorted(deprecated):
                actions.append(PlanAction(
                    kind=ActionKind.REMOVE,
                    identifier=identifier,
                    scope=scope,
                    source_path=paths_by_id.get(identifier),
                    reason=self._deprecation_reason(identifier),
                ))

        self._diagnostics = ()
        return ReconciliationPlan(actions=tuple(actions))

    def execute(self, plan: ReconciliationPlan, *, dry_run: bool = False) -> ExecutionSummary:
        """Apply *plan* with a :class:`PlanExecutor` sharing this engine's registry."""
        return PlanExecutor(self._paths, self._registry).execute(plan, dry_run=dry_run)

    # ── Internals ────────────────────────────────────────────────────

    def _discover(
        self,
        scope: Scope,
        diagnostics: list[Diagnostic],
        should_cancel: Callable[[], bool] | None,
    ) -> list[Definition]:
        definitions: list[Definition] = []
        seen: set[str] = set()

        for candidate in self._loader.candidates(self._paths.agents_dir(scope)):
            if should_cancel is not None and should_cancel():
                msg = f"Scan cancelled while reading {scope.value} scope"
                raise ScanCancelledError(msg)

            if self._ignore.is_ignored(candidate.path):
                logger.debug("Ignoring %s", candidate.path)
                continue

            if candidate.identifier in seen:
                diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.CONFLICT,
                    scope=scope,
                    path=candidate.path,
                    identifier=candidate.identifier,
                    message="shadowed by a single-file definition with the same identifier",
                ))
                continue

            result = self._loader.try_load(candidate.path, scope)
            if result.error is not None:
                logger.warning(
                    "Skipping %s: %s",
                    candidate.path,
                    result.error,
                    extra={"scope": scope.value, "path": candidate.path},
                )
                diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.LOAD_FAILURE,
                    scope=scope,
                    path=candidate.path,
                    identifier=candidate.identifier,
                    message=str(result.error),
                ))
                continue

            seen.add(candidate.identifier)
            definitions.append(result.definition)

        return definitions

    def _decide(
        self,
        definition: Definition,
        documents: dict[Scope, RegistryDocument],
        registered_anywhere: set[str],
        on_disk: dict[Scope, set[str]],
        contested: set[str],
        diagnostics: list[Diagnostic],
        *,
        eager_copy: bool,
    ) -> list[PlanAction]:
        identifier = definition.identifier
        scope = definition.scope
        source = definition.source_path

        if identifier in documents[scope]:
            logger.debug("Skipping %s - already registered", identifier)
            return [PlanAction(ActionKind.SKIP, identifier, scope, source, "already registered")]

        migration = self._migrations.lookup(identifier)
        if migration.outcome is MigrationOutcome.RENAMED:
            successor = migration.successor
            diagnostics.append(Diagnostic(
                kind=DiagnosticKind.DEPRECATED,
                scope=scope,
                path=source,
                identifier=identifier,
                message=f"deprecated; replaced by '{successor}'",
            ))
            if (
                successor in registered_anywhere
                or successor in on_disk[scope]
                or self._paths.single_file_path(scope, successor).exists()
            ):
                return [PlanAction(
                    ActionKind.REMOVE, identifier, scope, source,
                    f"superseded by '{successor}'", definition=definition,
                )]
            return [PlanAction(
                ActionKind.RENAME, identifier, scope, source,
                f"renamed to '{successor}'", target=successor, definition=definition,
            )]

        if migration.outcome is MigrationOutcome.REMOVED:
            diagnostics.append(Diagnostic(
                kind=DiagnosticKind.DEPRECATED,
                scope=scope,
                path=source,
                identifier=identifier,
                message="deprecated with no replacement",
            ))
            return [PlanAction(
                ActionKind.REMOVE, identifier, scope, source,
                "no replacement", definition=definition,
            )]

        if scope is Scope.USER and identifier in contested:
            diagnostics.append(Diagnostic(
                kind=DiagnosticKind.CONFLICT,
                scope=scope,
                path=source,
                identifier=identifier,
                message="also present in project scope; project definition wins",
            ))
            return [PlanAction(
                ActionKind.SKIP, identifier, scope, source, "project scope takes precedence",
            )]

        actions = [PlanAction(
            ActionKind.REGISTER, identifier, scope, source, definition=definition,
        )]
        if (
            eager_copy
            and scope is Scope.USER
            and identifier not in on_disk[Scope.PROJECT]
            and identifier not in documents[Scope.PROJECT]
        ):
            actions.append(PlanAction(
                ActionKind.COPY_TO_PROJECT, identifier, Scope.PROJECT, source,
                definition=definition,
            ))
        return actions

    def _deprecation_reason(self, identifier: str) -> str:
        result = self._migrations.lookup(identifier)
        if result.successor:
            return f"replaced by '{result.successor}'"
        return "no replacement"

"""Plan types shared by the reconciliation engine and the executor."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from agentsync_agents.definitions.types import Definition, Diagnostic, Scope


class ActionKind(enum.Enum):
    REGISTER = "register"
    COPY_TO_PROJECT = "copy-to-project"
    RENAME = "rename"
    REMOVE = "remove"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class PlanAction:
    """One step of a reconciliation plan.

    ``target`` is the successor identifier of a ``RENAME``.  ``definition``
    carries the loaded document for actions that register or write it.
    """

    kind: ActionKind
    identifier: str
    scope: Scope
    source_path: Path | None = None
    reason: str | None = None
    target: str | None = None
    definition: Definition | None = field(default=None, compare=False, repr=False)

    @property
    def actionable(self) -> bool:
        return self.kind is not ActionKind.SKIP


@dataclass(frozen=True, slots=True)
class ReconciliationPlan:
    actions: tuple[PlanAction, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    definitions: tuple[Definition, ...] = field(default=(), compare=False, repr=False)

    def __iter__(self):
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)

    @property
    def is_noop(self) -> bool:
        return not any(action.actionable for action in self.actions)

    def of_kind(self, kind: ActionKind) -> list[PlanAction]:
        return [action for action in self.actions if action.kind is kind]

    def identifiers(self, kind: ActionKind) -> list[str]:
        return [action.identifier for action in self.of_kind(kind)]

    def restrict_to(self, identifiers: Iterable[str]) -> ReconciliationPlan:
        """Turn actionable steps for unselected identifiers into skips."""
        selected = set(identifiers)
        actions = tuple(
            action
            if not action.actionable or action.identifier in selected
            else replace(action, kind=ActionKind.SKIP, reason="not selected")
            for action in self.actions
        )
        return replace(self, actions=actions)

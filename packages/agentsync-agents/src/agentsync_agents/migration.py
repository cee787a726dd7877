"""Deprecated identifiers and what replaced them."""
from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

# Old identifier -> successor, or None when removed without a replacement.
DEFAULT_MIGRATIONS: Mapping[str, str | None] = {
    "design-director-platform": "platform-redesigner",
    "design-system-architect": "design-system-creator",
    "doc-writer": "documentation-writer",
    "refactor": "code-refactorer",
    "interaction-design-optimizer": "ux-optimizer",
    "requirements-analyst": "codebase-analyzer",
    "system-architect-2025": "system-architect",
    "debugger": "performance-optimizer",
}


class MigrationOutcome(enum.Enum):
    UNCHANGED = "unchanged"
    RENAMED = "renamed"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class MigrationResult:
    identifier: str
    outcome: MigrationOutcome
    successor: str | None = None

    @property
    def deprecated(self) -> bool:
        return self.outcome is not MigrationOutcome.UNCHANGED


class NameMigrationTable:
    """Static lookup from deprecated identifiers to their successors.

    Entries are either a rename or a removal; mapping an identifier to
    itself is rejected because it is neither.
    """

    def __init__(self, mapping: Mapping[str, str | None] | None = None) -> None:
        table = dict(DEFAULT_MIGRATIONS if mapping is None else mapping)
        for old, new in table.items():
            if old == new:
                msg = f"Migration entry '{old}' maps to itself"
                raise ValueError(msg)
        self._table: dict[str, str | None] = table

    def lookup(self, identifier: str) -> MigrationResult:
        if identifier not in self._table:
            return MigrationResult(identifier, MigrationOutcome.UNCHANGED)
        successor = self._table[identifier]
        if successor is None:
            return MigrationResult(identifier, MigrationOutcome.REMOVED)
        return MigrationResult(identifier, MigrationOutcome.RENAMED, successor)

    def resolve(self, identifier: str) -> str:
        """Successor of *identifier*, or *identifier* itself when it has none."""
        return self.lookup(identifier).successor or identifier

    def is_deprecated(self, identifier: str) -> bool:
        return identifier in self._table

    def all_deprecated(self) -> frozenset[str]:
        return frozenset(self._table)

    def without_deprecated(self, entries: Mapping[str, Any]) -> dict[str, Any]:
        """Copy of *entries* with every deprecated identifier dropped."""
        return {name: value for name, value in entries.items() if name not in self._table}

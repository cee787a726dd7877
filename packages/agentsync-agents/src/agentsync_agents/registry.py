"""Persisted registry of installed definitions, one JSON document per scope.

Each scope's document is read whole and written whole.  A loaded
:class:`RegistryDocument` is a snapshot: mutate it, then hand it back to
:meth:`Registry.save`.  There is no locking; one writer at a time is
assumed, and concurrent edits by another process are lost.
"""
from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from agentsync_core.errors import AgentNotInstalledError, RegistryIOError
from agentsync_core.logging import get_logger

from agentsync_agents.definitions.types import Scope

if TYPE_CHECKING:
    from agentsync_agents.definitions.types import Definition
    from agentsync_agents.paths import ScopePaths

logger = get_logger("agents.registry")

SCHEMA_VERSION = "1.0.0"

DEFAULT_SETTINGS: dict[str, Any] = {
    "autoEnableOnInstall": True,
    "preferProjectScope": False,
    "autoUpdateCheck": True,
}

_ENTRY_KEYS = ("version", "installedAt", "scope", "enabled")
_DOCUMENT_KEYS = (
    "version",
    "installedAgents",
    "enabledAgents",
    "disabledAgents",
    "settings",
    "lastSyncTime",
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(slots=True)
class RegistryEntry:
    """Installation record for one identifier in one scope."""

    version: str
    installed_at: str
    scope: Scope
    enabled: bool = True
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_definition(cls, definition: Definition, scope: Scope) -> RegistryEntry:
        metadata: dict[str, Any] = {
            "description": definition.description,
            "layout": definition.source_layout.value,
        }
        author = definition.header.get("author")
        if author:
            metadata["author"] = str(author)
        if definition.tags:
            metadata["tags"] = definition.tags
        if definition.tools:
            metadata["tools"] = definition.tools
        return cls(
            version=definition.version,
            installed_at=_now_iso(),
            scope=scope,
            metadata=metadata,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.metadata,
            "version": self.version,
            "installedAt": self.installed_at,
            "scope": self.scope.value,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], scope: Scope) -> RegistryEntry:
        try:
            entry_scope = Scope(data.get("scope", scope.value))
        except ValueError:
            entry_scope = scope
        return cls(
            version=str(data.get("version", "1.0.0")),
            installed_at=str(data.get("installedAt", "")),
            scope=entry_scope,
            enabled=bool(data.get("enabled", True)),
            metadata={k: v for k, v in data.items() if k not in _ENTRY_KEYS},
        )


@dataclass(slots=True)
class RegistryDocument:
    """In-memory snapshot of one scope's registry file."""

    version: str = SCHEMA_VERSION
    installed: dict[str, RegistryEntry] = field(default_factory=dict)
    enabled: list[str] = field(default_factory=list)
    disabled: list[str] = field(default_factory=list)
    settings: dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_SETTINGS))
    last_sync_time: float | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self.installed

    def get(self, identifier: str) -> RegistryEntry | None:
        return self.installed.get(identifier)

    def is_disabled(self, identifier: str) -> bool:
        return identifier in self.disabled

    def is_enabled(self, identifier: str) -> bool:
        if identifier in self.disabled:
            return False
        entry = self.installed.get(identifier)
        return identifier in self.enabled or (entry is not None and entry.enabled)

    def upsert(self, identifier: str, entry: RegistryEntry) -> None:
        """Insert or replace an entry, applying the auto-enable setting.

        An existing explicit disable is kept.
        """
        self.installed[identifier] = entry
        if identifier in self.disabled or not entry.enabled:
            self._mark_disabled(identifier)
        elif self.settings.get("autoEnableOnInstall", True):
            self._mark_enabled(identifier)
        entry.enabled = identifier in self.enabled

    def remove(self, identifier: str) -> bool:
        """Drop the entry and any enable/disable marks. Returns whether it existed."""
        existed = self.installed.pop(identifier, None) is not None
        self.enabled = [name for name in self.enabled if name != identifier]
        self.disabled = [name for name in self.disabled if name != identifier]
        return existed

    def enable(self, identifier: str) -> None:
        self._mark_enabled(identifier)
        entry = self.installed.get(identifier)
        if entry is not None:
            entry.enabled = True

    def disable(self, identifier: str) -> None:
        self._mark_disabled(identifier)
        entry = self.installed.get(identifier)
        if entry is not None:
            entry.enabled = False

    def _mark_enabled(self, identifier: str) -> None:
        self.disabled = [name for name in self.disabled if name != identifier]
        if identifier not in self.enabled:
            self.enabled.append(identifier)

    def _mark_disabled(self, identifier: str) -> None:
        self.enabled = [name for name in self.enabled if name != identifier]
        if identifier not in self.disabled:
            self.disabled.append(identifier)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            **self.extra,
            "version": self.version,
            "installedAgents": {
                name: entry.to_dict() for name, entry in self.installed.items()
            },
            "enabledAgents": list(self.enabled),
            "disabledAgents": list(self.disabled),
            "settings": dict(self.settings),
        }
        if self.last_sync_time is not None:
            data["lastSyncTime"] = self.last_sync_time
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], scope: Scope) -> RegistryDocument:
        installed_raw = data.get("installedAgents") or {}
        if not isinstance(installed_raw, dict):
            msg = "'installedAgents' must be an object"
            raise ValueError(msg)

        disabled = [str(name) for name in data.get("disabledAgents") or []]
        installed: dict[str, RegistryEntry] = {}
        for name, raw in installed_raw.items():
            entry = RegistryEntry.from_dict(raw if isinstance(raw, dict) else {}, scope)
            if name in disabled:
                entry.enabled = False
            installed[str(name)] = entry

        last_sync = data.get("lastSyncTime")
        return cls(
            version=str(data.get("version", SCHEMA_VERSION)),
            installed=installed,
            enabled=[str(name) for name in data.get("enabledAgents") or []],
            disabled=disabled,
            settings={**DEFAULT_SETTINGS, **(data.get("settings") or {})},
            last_sync_time=float(last_sync) if isinstance(last_sync, (int, float)) else None,
            extra={k: v for k, v in data.items() if k not in _DOCUMENT_KEYS},
        )


class Registry:
    """Reads and writes the per-scope registry documents.

    Every failure to read, decode or write a document is raised as
    :class:`RegistryIOError`; callers must not continue on a registry
    they could not load.
    """

    def __init__(self, paths: ScopePaths) -> None:
        self._paths = paths

    @property
    def paths(self) -> ScopePaths:
        return self._paths

    def load(self, scope: Scope) -> RegistryDocument:
        path = self._paths.registry_path(scope)
        if not path.exists():
            return RegistryDocument()

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            msg = f"Could not read {scope.value} registry {path}: {exc}"
            raise RegistryIOError(msg) from exc

        if not isinstance(data, dict):
            msg = f"Registry {path} must hold a JSON object"
            raise RegistryIOError(msg)

        try:
            return RegistryDocument.from_dict(data, scope)
        except (TypeError, ValueError) as exc:
            msg = f"Malformed {scope.value} registry {path}: {exc}"
            raise RegistryIOError(msg) from exc

    def save(self, scope: Scope, document: RegistryDocument) -> None:
        """Overwrite the scope's document with *document*."""
        path = self._paths.registry_path(scope)
        tmp = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(
                json.dumps(document.to_dict(), indent=2) + "\n",
                encoding="utf-8",
            )
            os.replace(tmp, path)
        except OSError as exc:
            msg = f"Could not write {scope.value} registry {path}: {exc}"
            raise RegistryIOError(msg) from exc
        logger.debug("Saved %s registry (%d entries)", scope.value, len(document.installed))

    # ── Read-modify-write helpers ────────────────────────────────────

    def upsert(self, scope: Scope, identifier: str, entry: RegistryEntry) -> RegistryDocument:
        document = self.load(scope)
        document.upsert(identifier, entry)
        self.save(scope, document)
        return document

    def remove(self, scope: Scope, identifier: str) -> bool:
        document = self.load(scope)
        existed = document.remove(identifier)
        if existed:
            self.save(scope, document)
        return existed

    def enable(self, scope: Scope, identifier: str) -> None:
        document = self.load(scope)
        if identifier not in document:
            raise AgentNotInstalledError(f"Agent '{identifier}' is not installed in {scope.value} scope.")
        document.enable(identifier)
        self.save(scope, document)

    def disable(self, scope: Scope, identifier: str) -> None:
        document = self.load(scope)
        if identifier not in document:
            raise AgentNotInstalledError(f"Agent '{identifier}' is not installed in {scope.value} scope.")
        document.disable(identifier)
        self.save(scope, document)

    # ── Cross-scope queries ──────────────────────────────────────────

    def is_enabled(self, identifier: str) -> bool:
        """Enabled in either scope and explicitly disabled in neither."""
        documents = [self.load(Scope.USER), self.load(Scope.PROJECT)]
        if any(doc.is_disabled(identifier) for doc in documents):
            return False
        return any(doc.is_enabled(identifier) for doc in documents)

    def installed(self) -> dict[str, RegistryEntry]:
        """Entries from both scopes; a project entry shadows a user entry."""
        merged = dict(self.load(Scope.USER).installed)
        merged.update(self.load(Scope.PROJECT).installed)
        return merged

    def scope_of(self, identifier: str) -> Scope | None:
        """Scope holding *identifier*, preferring the project scope."""
        for scope in (Scope.PROJECT, Scope.USER):
            if identifier in self.load(scope):
                return scope
        return None

    # ── Sync timestamps ──────────────────────────────────────────────

    def last_sync_time(self) -> float | None:
        return self.load(Scope.USER).last_sync_time

    def mark_synced(self, when: float | None = None) -> None:
        document = self.load(Scope.USER)
        document.last_sync_time = time.time() if when is None else when
        self.save(Scope.USER, document)

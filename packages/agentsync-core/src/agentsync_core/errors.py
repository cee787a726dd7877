from __future__ import annotations

import enum


class AgentsyncError(Exception):
    """Base exception for all agentsync errors."""


# ── Definition Errors ────────────────────────────────────────────────

class DefinitionError(AgentsyncError):
    """Base for errors raised while reading a single definition.

    These are recoverable per file: batch discovery turns them into
    diagnostics instead of aborting.
    """


class HeaderParseError(DefinitionError):
    """Document has no header block, or the block yields no keys."""


class LoadErrorKind(enum.Enum):
    MISSING_FILE = "missing-file"
    MALFORMED_METADATA = "malformed-metadata"


class LoadError(DefinitionError):
    """A required file is absent or a metadata sidecar is unreadable."""

    def __init__(self, kind: LoadErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class InvalidIdentifierError(DefinitionError):
    """Identifier derived from a file or directory name is not allowed."""


# ── Registry Errors ──────────────────────────────────────────────────

class RegistryError(AgentsyncError):
    """Base for registry errors."""


class RegistryIOError(RegistryError):
    """Registry document could not be read, decoded or written."""


class AgentNotInstalledError(RegistryError):
    """Identifier is not installed in any scope."""


# ── Execution Errors ─────────────────────────────────────────────────

class ExecutionError(AgentsyncError):
    """Base for plan execution errors."""


class ActionFailedError(ExecutionError):
    """A single plan action could not be applied."""


class ScanCancelledError(AgentsyncError):
    """Scan was cancelled between candidate files."""


# ── Config Errors ────────────────────────────────────────────────────

class ConfigError(AgentsyncError):
    """Invalid or missing configuration."""

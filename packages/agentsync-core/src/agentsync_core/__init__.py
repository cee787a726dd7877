"""agentsync core: shared config, errors, and logging."""
from __future__ import annotations

from agentsync_core._version import __version__
from agentsync_core.config import (
    AgentsyncConfig,
    LoggingConfig,
    PathsConfig,
    SyncConfig,
)
from agentsync_core.errors import (
    ActionFailedError,
    AgentNotInstalledError,
    AgentsyncError,
    ConfigError,
    DefinitionError,
    ExecutionError,
    HeaderParseError,
    InvalidIdentifierError,
    LoadError,
    LoadErrorKind,
    RegistryError,
    RegistryIOError,
    ScanCancelledError,
)
from agentsync_core.logging import get_logger, setup_logging

__all__ = [
    # Errors
    "ActionFailedError",
    "AgentNotInstalledError",
    # Config
    "AgentsyncConfig",
    "AgentsyncError",
    "ConfigError",
    "DefinitionError",
    "ExecutionError",
    "HeaderParseError",
    "InvalidIdentifierError",
    "LoadError",
    "LoadErrorKind",
    "LoggingConfig",
    "PathsConfig",
    "RegistryError",
    "RegistryIOError",
    "ScanCancelledError",
    "SyncConfig",
    # Version
    "__version__",
    # Logging
    "get_logger",
    "setup_logging",
]

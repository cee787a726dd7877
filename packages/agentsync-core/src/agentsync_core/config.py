from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from agentsync_core.errors import ConfigError
from agentsync_core.logging import get_logger

logger = get_logger("config")

_APP_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


def _load_toml(path: Path) -> dict:
    """Load a TOML file, returning empty dict if missing or unreadable."""
    if not path.exists():
        return {}
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base (1 level deep for TOML sections)."""
    merged = dict(base)
    for key, val in override.items():
        if (
            key in merged
            and isinstance(merged[key], dict)
            and isinstance(val, dict)
        ):
            merged[key] = {**merged[key], **val}
        else:
            merged[key] = val
    return merged


@dataclass(frozen=True, slots=True)
class PathsConfig:
    # Directory name under home/cwd is ".<app_name>"
    app_name: str = "claude"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    eager_copy: bool = False
    use_gitignore: bool = False
    ignore_patterns: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    level: str = "INFO"
    json: bool = False


@dataclass(frozen=True, slots=True)
class AgentsyncConfig:
    """Top-level configuration, parsed from agentsync.toml."""
    paths: PathsConfig = field(default_factory=PathsConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_toml(
        cls, path: Path | str = "agentsync.toml"
    ) -> AgentsyncConfig:
        path = Path(path)
        raw = _load_toml(path)
        return cls._from_raw(raw)

    @classmethod
    def load(
        cls,
        project_dir: Path | str | None = None,
        home_dir: Path | str | None = None,
    ) -> AgentsyncConfig:
        """Load config with global → project layering.

        Resolution order (later wins):
        1. Built-in defaults
        2. ~/.agentsync/config.toml (global)
        3. .agentsync/config.toml or agentsync.toml (project)
        """
        home = Path.home() if home_dir is None else Path(home_dir)
        global_path = home / ".agentsync" / "config.toml"

        project_dir = (
            Path.cwd() if project_dir is None else Path(project_dir)
        )

        # Project config: .agentsync/config.toml takes priority
        project_path = project_dir / ".agentsync" / "config.toml"
        if not project_path.exists():
            project_path = project_dir / "agentsync.toml"

        global_raw = _load_toml(global_path)
        project_raw = _load_toml(project_path)
        merged = _deep_merge(global_raw, project_raw)

        return cls._from_raw(merged)

    @classmethod
    def _from_raw(cls, raw: dict) -> AgentsyncConfig:
        """Build AgentsyncConfig from a raw TOML dict."""

        def _pick(section: object, dc: type) -> dict:
            if not isinstance(section, dict):
                return {}
            fields = dc.__dataclass_fields__
            return {
                k: v for k, v in section.items() if k in fields
            }

        paths = PathsConfig(**_pick(raw.get("paths", {}), PathsConfig))
        if not _APP_NAME_PATTERN.match(paths.app_name):
            msg = f"Invalid [paths] app_name: {paths.app_name!r}"
            raise ConfigError(msg)

        sync = SyncConfig(**_pick(raw.get("sync", {}), SyncConfig))
        if not isinstance(sync.ignore_patterns, list):
            msg = "[sync] ignore_patterns must be a list of glob patterns"
            raise ConfigError(msg)

        return cls(
            paths=paths,
            sync=sync,
            logging=LoggingConfig(
                **_pick(raw.get("logging", {}), LoggingConfig)
            ),
        )

"""Ignore-pattern matching applied to candidate paths before loading."""
from __future__ import annotations

import fnmatch
from pathlib import Path, PurePosixPath
from typing import Protocol, runtime_checkable

from agentsync_core.logging import get_logger

logger = get_logger("agents.ignore")

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    ".git/**",
    ".DS_Store",
    "Thumbs.db",
    "*.swp",
    "*.swo",
    "*~",
    "*.bak",
    ".idea/**",
    ".vscode/**",
)


@runtime_checkable
class IgnoreMatcher(Protocol):
    """Decides whether a candidate path is excluded from discovery."""

    def is_ignored(self, path: Path) -> bool: ...


class NullIgnoreMatcher:
    """Ignores nothing."""

    def is_ignored(self, path: Path) -> bool:
        return False


def parse_gitignore(path: Path) -> list[str]:
    """Read glob patterns from a ``.gitignore`` file.

    Comments are skipped.  Negations (``!pattern``) are not supported and
    are dropped with a debug message.  Directory patterns (trailing ``/``)
    are widened to match everything beneath them.
    """
    if not path.is_file():
        return []
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return []

    patterns: list[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("!"):
            logger.debug("Ignoring unsupported negation %r in %s", line, path)
            continue
        if line.endswith("/"):
            line += "**"
        patterns.append(line.lstrip("/"))
    return patterns


class GitignoreMatcher:
    """Glob matcher over default patterns, a ``.gitignore`` and extras.

    Paths are matched relative to *root* when they live beneath it, and
    every pattern is also tried against the bare file name so that
    ``*.swp`` excludes swap files in any directory.
    """

    def __init__(
        self,
        root: Path,
        patterns: list[str] | None = None,
        use_gitignore: bool = True,
    ) -> None:
        self._root = root
        self._patterns: list[str] = list(DEFAULT_IGNORE_PATTERNS)
        if use_gitignore:
            self._patterns.extend(parse_gitignore(root / ".gitignore"))
        self._patterns.extend(patterns or [])

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)

    def is_ignored(self, path: Path) -> bool:
        try:
            rel = PurePosixPath(path.resolve().relative_to(self._root.resolve()))
        except ValueError:
            rel = PurePosixPath(path.name)

        for pattern in self._patterns:
            if fnmatch.fnmatch(str(rel), pattern) or fnmatch.fnmatch(rel.name, pattern):
                return True
            # "dir/**" also covers the directory entry itself
            if pattern.endswith("/**") and (
                str(rel) == pattern[:-3] or str(rel).startswith(pattern[:-2])
            ):
                return True
        return False

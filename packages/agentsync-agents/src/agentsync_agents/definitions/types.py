"""Agent definition types shared by the loader, registry and reconciler."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

HeaderValue = str | bool | int | float | list[str]


class Scope(enum.Enum):
    """Storage location of definitions and registry state."""

    USER = "user"
    PROJECT = "project"


class SourceLayout(enum.Enum):
    """On-disk shape a definition was loaded from."""

    SINGLE_FILE = "single-file"
    DIRECTORY_WITH_SIDECARS = "directory"


class HeaderStatus(enum.Enum):
    NO_HEADER = "no-header"
    STRICT = "strict"
    LENIENT = "lenient"
    MALFORMED = "malformed"


@dataclass(frozen=True, slots=True)
class HeaderParse:
    """Outcome of extracting and parsing a document header.

    ``status`` tells callers which path produced ``header``: the strict
    YAML parse, the lenient line scanner, or neither.  ``error`` carries
    the strict parser's complaint whenever the lenient path was taken.
    """

    status: HeaderStatus
    header: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in (HeaderStatus.STRICT, HeaderStatus.LENIENT)


@dataclass(frozen=True, slots=True)
class Definition:
    """One agent document, normalized regardless of on-disk layout.

    ``identifier`` always comes from the file or directory name.  The
    header's ``name`` is advisory and exposed as :attr:`declared_name`.
    """

    identifier: str
    header: dict[str, Any]
    body: str
    raw_text: str
    source_layout: SourceLayout
    scope: Scope
    source_path: Path | None = None

    @property
    def description(self) -> str:
        value = self.header.get("description")
        return "" if value is None else str(value)

    @property
    def version(self) -> str:
        value = self.header.get("version")
        return "1.0.0" if value in (None, "") else str(value)

    @property
    def declared_name(self) -> str | None:
        value = self.header.get("name")
        return None if value in (None, "") else str(value)

    @property
    def tools(self) -> list[str]:
        """Tool names, accepting both YAML lists and ``"A, B"`` strings."""
        value = self.header.get("tools")
        if not value:
            return []
        if isinstance(value, list):
            return [str(item).strip() for item in value if str(item).strip()]
        return [part.strip() for part in str(value).split(",") if part.strip()]

    @property
    def tags(self) -> list[str]:
        value = self.header.get("tags")
        if not value:
            return []
        if isinstance(value, list):
            return [str(item) for item in value]
        return [str(value)]


class DiagnosticKind(enum.Enum):
    LOAD_FAILURE = "load-failure"
    CONFLICT = "conflict"
    DEPRECATED = "deprecated"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A non-fatal finding recorded during a scan."""

    kind: DiagnosticKind
    scope: Scope
    path: Path
    message: str
    identifier: str | None = None

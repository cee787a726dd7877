"""Definition discovery and loading from a scope's agents directory."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from agentsync_core.errors import (
    DefinitionError,
    HeaderParseError,
    LoadError,
    LoadErrorKind,
)
from agentsync_core.logging import get_logger

from agentsync_agents.definitions.frontmatter import parse_document, render_document
from agentsync_agents.definitions.types import (
    Definition,
    HeaderStatus,
    Scope,
    SourceLayout,
)
from agentsync_agents.definitions.validator import validate_identifier

if TYPE_CHECKING:
    from pathlib import Path

logger = get_logger("agents.loader")

METADATA_FILENAME = "metadata.json"
BODY_FILENAME = "agent.md"
HOOKS_FILENAME = "hooks.json"
_DOCUMENT_SUFFIX = ".md"


@dataclass(frozen=True, slots=True)
class Candidate:
    """A path that looks like a definition, before it is loaded."""

    identifier: str
    path: Path
    layout: SourceLayout


@dataclass(frozen=True, slots=True)
class LoadResult:
    definition: Definition | None = None
    error: DefinitionError | None = None


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


class DefinitionLoader:
    """Loads definitions in either on-disk layout.

    A *single file* is ``<agents>/<identifier>.md`` with a header block.
    A *directory with sidecars* is ``<agents>/<identifier>/`` holding a
    ``metadata.json``, an ``agent.md`` body and optionally ``hooks.json``.
    The layout is decided once, here; everything downstream works on the
    normalized :class:`Definition`.
    """

    def candidates(self, agents_dir: Path) -> list[Candidate]:
        """List definition candidates, sorted by identifier.

        When one identifier exists in both layouts the single file is
        listed first.
        """
        if not agents_dir.is_dir():
            logger.debug("Skipping non-existent path: %s", agents_dir)
            return []

        found: list[Candidate] = []
        for entry in agents_dir.iterdir():
            if entry.is_file() and entry.suffix == _DOCUMENT_SUFFIX:
                found.append(
                    Candidate(entry.stem, entry, SourceLayout.SINGLE_FILE)
                )
            elif entry.is_dir() and (
                (entry / METADATA_FILENAME).exists()
                or (entry / BODY_FILENAME).exists()
            ):
                found.append(
                    Candidate(entry.name, entry, SourceLayout.DIRECTORY_WITH_SIDECARS)
                )

        found.sort(
            key=lambda c: (c.identifier, c.layout is not SourceLayout.SINGLE_FILE)
        )
        return found

    def load(self, path: Path, scope: Scope) -> Definition | None:
        """Load one definition, returning *None* (and logging) on failure."""
        result = self.try_load(path, scope)
        if result.error is not None:
            logger.warning(
                "Failed to load agent definition from %s: %s",
                path,
                result.error,
                extra={"scope": scope.value, "path": path},
            )
        return result.definition

    def try_load(self, path: Path, scope: Scope) -> LoadResult:
        """Load one definition, capturing any per-file error in the result."""
        try:
            return LoadResult(definition=self.load_strict(path, scope))
        except DefinitionError as exc:
            return LoadResult(error=exc)

    def load_strict(self, path: Path, scope: Scope) -> Definition:
        """Load one definition from a ``.md`` file or a sidecar directory.

        Raises:
            InvalidIdentifierError: If the file or directory name is not a
                valid identifier.
            LoadError: If a required file is missing, a metadata sidecar
                is malformed, or a sidecar directory yields no description.
            HeaderParseError: If a document has no usable header or its
                header has no description.
        """
        if path.is_dir():
            return self._load_directory(path, scope)
        return self._load_single_file(path, scope)

    # ── Layouts ──────────────────────────────────────────────────────

    def _load_single_file(self, path: Path, scope: Scope) -> Definition:
        identifier = validate_identifier(
            path.name[: -len(_DOCUMENT_SUFFIX)]
            if path.name.endswith(_DOCUMENT_SUFFIX)
            else path.name
        )
        text = _read_text(path)

        parsed = parse_document(text)
        if parsed.status is HeaderStatus.NO_HEADER:
            msg = f"No header block found: {path}"
            raise HeaderParseError(msg)
        if parsed.status is HeaderStatus.MALFORMED:
            msg = f"Header block yielded no fields: {path} ({parsed.error})"
            raise HeaderParseError(msg)
        if parsed.status is HeaderStatus.LENIENT:
            logger.debug("Parsed %s with the lenient header parser", path)
        if not _has_description(parsed.header):
            msg = f"Header block has no description: {path}"
            raise HeaderParseError(msg)

        definition = Definition(
            identifier=identifier,
            header=parsed.header,
            body=parsed.body,
            raw_text=text,
            source_layout=SourceLayout.SINGLE_FILE,
            scope=scope,
            source_path=path,
        )
        _check_declared_name(definition)
        return definition

    def _load_directory(self, path: Path, scope: Scope) -> Definition:
        identifier = validate_identifier(path.name)

        metadata = _read_json(path / METADATA_FILENAME, required=True)
        text = _read_text(path / BODY_FILENAME)

        parsed = parse_document(text)
        if parsed.status is HeaderStatus.MALFORMED:
            msg = f"Header block yielded no fields: {path / BODY_FILENAME}"
            raise HeaderParseError(msg)

        header = _header_from_metadata(metadata)
        for key, value in parsed.header.items():
            if not _is_empty(value) or key not in header:
                header[key] = value

        hooks = _read_json(path / HOOKS_FILENAME, required=False)
        recommended = _recommended_hooks(hooks)
        if recommended and _is_empty(header.get("hooksRecommended")):
            header["hooksRecommended"] = recommended

        # raw_text must reload as a single file, which needs a description.
        if not _has_description(header):
            msg = (
                f"No description in {path / METADATA_FILENAME} or the "
                f"{BODY_FILENAME} header"
            )
            raise LoadError(LoadErrorKind.MALFORMED_METADATA, msg)

        definition = Definition(
            identifier=identifier,
            header=header,
            body=parsed.body,
            raw_text=render_document(header, parsed.body),
            source_layout=SourceLayout.DIRECTORY_WITH_SIDECARS,
            scope=scope,
            source_path=path,
        )
        _check_declared_name(definition)
        return definition


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        msg = f"Required file not found: {path}"
        raise LoadError(LoadErrorKind.MISSING_FILE, msg) from exc
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Could not read {path}: {exc}"
        raise LoadError(LoadErrorKind.MISSING_FILE, msg) from exc


def _read_json(path: Path, *, required: bool) -> Any:
    """Read a JSON sidecar with a strict parse.

    Optional sidecars that are absent, unreadable or malformed yield
    *None*.  A required sidecar that is not UTF-8 JSON is malformed
    metadata.
    """
    if not path.exists():
        if required:
            msg = f"Required file not found: {path}"
            raise LoadError(LoadErrorKind.MISSING_FILE, msg)
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        if not required:
            logger.warning("Ignoring unreadable sidecar %s: %s", path, exc)
            return None
        msg = f"Could not read {path}: {exc}"
        raise LoadError(LoadErrorKind.MISSING_FILE, msg) from exc
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        if not required:
            logger.warning("Ignoring malformed sidecar %s: %s", path, exc)
            return None
        msg = f"Malformed metadata in {path}: {exc}"
        raise LoadError(LoadErrorKind.MALFORMED_METADATA, msg) from exc

    if required and not isinstance(data, dict):
        msg = f"Metadata must be a JSON object, got {type(data).__name__}: {path}"
        raise LoadError(LoadErrorKind.MALFORMED_METADATA, msg)
    return data


def _has_description(header: dict[str, Any]) -> bool:
    description = header.get("description")
    return not _is_empty(description) and bool(str(description).strip())


def _header_from_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Map a ``metadata.json`` document onto header fields."""
    header: dict[str, Any] = {}
    for key in ("name", "description", "version", "author", "tags"):
        if not _is_empty(metadata.get(key)):
            header[key] = metadata[key]

    requirements = metadata.get("requirements")
    tools = metadata.get("tools")
    if isinstance(requirements, dict) and not _is_empty(requirements.get("tools")):
        tools = requirements["tools"]
    if not _is_empty(tools):
        header["tools"] = tools

    hooks = metadata.get("hooks")
    if isinstance(hooks, dict) and not _is_empty(hooks.get("recommended")):
        header["hooksRecommended"] = [str(h) for h in hooks["recommended"]]
    return header


def _recommended_hooks(hooks: Any) -> list[str]:
    if isinstance(hooks, list):
        return [str(h) for h in hooks]
    if isinstance(hooks, dict) and isinstance(hooks.get("recommended"), list):
        return [str(h) for h in hooks["recommended"]]
    return []


def _check_declared_name(definition: Definition) -> None:
    declared = definition.declared_name
    if declared is not None and declared != definition.identifier:
        logger.warning(
            "Header name '%s' differs from identifier '%s' (%s); using identifier",
            declared,
            definition.identifier,
            definition.source_path,
        )

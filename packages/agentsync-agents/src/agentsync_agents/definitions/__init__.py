"""Agent definition system: header parsing, loading, and validation."""
from __future__ import annotations

from agentsync_agents.definitions.frontmatter import (
    extract_header,
    parse_document,
    parse_header,
    parse_lenient,
    render_document,
)
from agentsync_agents.definitions.loader import Candidate, DefinitionLoader, LoadResult
from agentsync_agents.definitions.types import (
    Definition,
    Diagnostic,
    DiagnosticKind,
    HeaderParse,
    HeaderStatus,
    Scope,
    SourceLayout,
)
from agentsync_agents.definitions.validator import (
    DefinitionValidator,
    identifier_errors,
    is_valid_identifier,
    validate_identifier,
)

__all__ = [
    "Candidate",
    "Definition",
    "DefinitionLoader",
    "DefinitionValidator",
    "Diagnostic",
    "DiagnosticKind",
    "HeaderParse",
    "HeaderStatus",
    "LoadResult",
    "Scope",
    "SourceLayout",
    "extract_header",
    "identifier_errors",
    "is_valid_identifier",
    "parse_document",
    "parse_header",
    "parse_lenient",
    "render_document",
    "validate_identifier",
]

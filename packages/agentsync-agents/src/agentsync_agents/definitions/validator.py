"""Definition validation: identifier rules and header sanity checks."""
from __future__ import annotations

import re
from typing import TYPE_CHECKING

from agentsync_core.errors import InvalidIdentifierError

if TYPE_CHECKING:
    from agentsync_agents.definitions.types import Definition

_IDENTIFIER_PATTERN = re.compile(r"^[a-z0-9-]+$")
_IDENTIFIER_MIN_LENGTH = 3
_IDENTIFIER_MAX_LENGTH = 50
_DANGEROUS_FRAGMENTS = ("%2e", "%2f", "%5c", "%252e", "%252f", "%255c", "~")
_VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")


def identifier_errors(identifier: str) -> list[str]:
    """Return the reasons *identifier* is not a valid definition identifier."""
    if not identifier:
        return ["Identifier must be a non-empty string."]

    errors: list[str] = []
    if not _IDENTIFIER_MIN_LENGTH <= len(identifier) <= _IDENTIFIER_MAX_LENGTH:
        errors.append(
            f"Identifier must be between {_IDENTIFIER_MIN_LENGTH} and "
            f"{_IDENTIFIER_MAX_LENGTH} characters: '{identifier}'."
        )
    if not _IDENTIFIER_PATTERN.match(identifier):
        errors.append(
            "Identifier can only contain lowercase letters, numbers, "
            f"and hyphens: '{identifier}'."
        )
    if identifier.startswith("-") or identifier.endswith("-"):
        errors.append(f"Identifier cannot start or end with a hyphen: '{identifier}'.")
    lowered = identifier.lower()
    if ".." in identifier or any(frag in lowered for frag in _DANGEROUS_FRAGMENTS):
        errors.append(f"Identifier contains path-like fragments: '{identifier}'.")
    return errors


def is_valid_identifier(identifier: str) -> bool:
    return not identifier_errors(identifier)


def validate_identifier(identifier: str) -> str:
    """Return *identifier* unchanged, or raise InvalidIdentifierError."""
    errors = identifier_errors(identifier)
    if errors:
        raise InvalidIdentifierError(" ".join(errors))
    return identifier


class DefinitionValidator:
    """Validates a loaded Definition beyond what loading already enforces."""

    def validate(self, definition: Definition) -> list[str]:
        """Return a list of validation error messages.

        An empty list means the definition is valid.
        """
        errors = identifier_errors(definition.identifier)

        declared = definition.declared_name
        if declared is not None and declared != definition.identifier:
            errors.append(
                f"Header name '{declared}' does not match identifier "
                f"'{definition.identifier}'."
            )

        if not definition.description:
            errors.append("Description is required.")

        version = definition.header.get("version")
        if version is not None and not _VERSION_PATTERN.match(str(version)):
            errors.append(
                f"Version must follow semantic versioning (e.g. 1.0.0): '{version}'."
            )

        tools = definition.header.get("tools")
        if tools is not None and not isinstance(tools, (list, str)):
            errors.append("Tools must be a list or a comma-separated string.")

        return errors

from __future__ import annotations

import pytest
from agentsync_agents.definitions import (
    Definition,
    DefinitionValidator,
    Scope,
    SourceLayout,
    identifier_errors,
    is_valid_identifier,
    validate_identifier,
)
from agentsync_core.errors import InvalidIdentifierError


def _definition(identifier: str = "code-reviewer", **header) -> Definition:
    header.setdefault("description", "Reviews code")
    return Definition(
        identifier=identifier,
        header=header,
        body="Body",
        raw_text="",
        source_layout=SourceLayout.SINGLE_FILE,
        scope=Scope.USER,
    )


class TestIdentifiers:
    @pytest.mark.parametrize(
        "identifier",
        ["Ab", "ab", "-abc", "abc-", "a/b", "Code-Reviewer", "code_reviewer", "a" * 51, "", "abc%2e"],
    )
    def test_rejected(self, identifier: str) -> None:
        assert not is_valid_identifier(identifier)
        assert identifier_errors(identifier)

    @pytest.mark.parametrize("identifier", ["code-reviewer", "abc", "test-runner-2", "a" * 50])
    def test_accepted(self, identifier: str) -> None:
        assert is_valid_identifier(identifier)
        assert validate_identifier(identifier) == identifier

    def test_validate_raises_with_reasons(self) -> None:
        with pytest.raises(InvalidIdentifierError, match="hyphen"):
            validate_identifier("-abc")


class TestDefinitionValidator:
    def test_valid_definition(self) -> None:
        assert DefinitionValidator().validate(_definition(name="code-reviewer")) == []

    def test_name_mismatch(self) -> None:
        errors = DefinitionValidator().validate(_definition(name="other-name"))

        assert len(errors) == 1
        assert "does not match" in errors[0]

    def test_missing_description(self) -> None:
        errors = DefinitionValidator().validate(_definition(description=""))

        assert errors == ["Description is required."]

    def test_bad_version_and_tools(self) -> None:
        errors = DefinitionValidator().validate(_definition(version="1.0", tools=42))

        assert len(errors) == 2
        assert any("semantic versioning" in e for e in errors)
        assert any("Tools" in e for e in errors)

    def test_comma_separated_tools_are_fine(self) -> None:
        definition = _definition(tools="Read, Grep")

        assert DefinitionValidator().validate(definition) == []
        assert definition.tools == ["Read", "Grep"]

"""Tests for definition discovery and loading in both on-disk layouts."""
from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from agentsync_agents.definitions import (
    DefinitionLoader,
    HeaderStatus,
    Scope,
    SourceLayout,
    parse_document,
)
from agentsync_core.errors import (
    HeaderParseError,
    InvalidIdentifierError,
    LoadError,
    LoadErrorKind,
)

if TYPE_CHECKING:
    from agentsync_agents import ScopePaths

_METADATA = {
    "name": "api-designer",
    "description": "Designs HTTP APIs",
    "version": "2.1.0",
    "author": "Platform Team",
    "tags": ["api", "design"],
    "requirements": {"tools": ["Read", "Write"]},
}


# ── Single file ──────────────────────────────────────────────────────


class TestSingleFile:
    def test_load(self, write_agent, loader: DefinitionLoader) -> None:
        path = write_agent(Scope.USER, "code-reviewer")

        definition = loader.load_strict(path, Scope.USER)

        assert definition.identifier == "code-reviewer"
        assert definition.declared_name == "code-reviewer"
        assert definition.description == "Handles a focused task"
        assert definition.version == "1.0.0"
        assert definition.body == "You are a focused agent."
        assert definition.raw_text == path.read_text(encoding="utf-8")
        assert definition.source_layout is SourceLayout.SINGLE_FILE
        assert definition.scope is Scope.USER
        assert definition.source_path == path

    def test_identifier_comes_from_filename(self, write_agent, agent_doc, loader) -> None:
        path = write_agent(Scope.PROJECT, "test-runner", agent_doc("something-else"))

        definition = loader.load_strict(path, Scope.PROJECT)

        assert definition.identifier == "test-runner"
        assert definition.declared_name == "something-else"

    def test_no_header(self, write_agent, loader: DefinitionLoader) -> None:
        path = write_agent(Scope.USER, "plain-notes", "# Notes\n\nNo header.\n")

        with pytest.raises(HeaderParseError, match="No header"):
            loader.load_strict(path, Scope.USER)

        result = loader.try_load(path, Scope.USER)
        assert result.definition is None
        assert isinstance(result.error, HeaderParseError)
        assert loader.load(path, Scope.USER) is None

    def test_empty_header(self, write_agent, loader: DefinitionLoader) -> None:
        path = write_agent(Scope.USER, "empty-head", "---\n\n---\nBody\n")

        with pytest.raises(HeaderParseError):
            loader.load_strict(path, Scope.USER)

    def test_header_without_description(self, write_agent, loader: DefinitionLoader) -> None:
        path = write_agent(Scope.USER, "no-summary", "---\nname: no-summary\n---\nBody\n")

        with pytest.raises(HeaderParseError, match="no description"):
            loader.load_strict(path, Scope.USER)

    def test_invalid_identifier(self, write_agent, loader: DefinitionLoader) -> None:
        path = write_agent(Scope.USER, "Bad_Name")

        with pytest.raises(InvalidIdentifierError):
            loader.load_strict(path, Scope.USER)

    def test_lenient_header_loads(self, write_agent, loader: DefinitionLoader) -> None:
        text = (
            "---\n"
            "name: code-reviewer\n"
            "description: Reviews code. Examples:\\n\\nContext: a change landed\n"
            "tools: Read, Grep\n"
            "---\n\nReview carefully.\n"
        )
        path = write_agent(Scope.USER, "code-reviewer", text)

        definition = loader.load_strict(path, Scope.USER)

        assert definition.tools == ["Read", "Grep"]
        assert "Context: a change landed" in definition.description
        assert definition.raw_text == text


# ── Directory with sidecars ──────────────────────────────────────────


class TestDirectoryLayout:
    def test_load_merges_metadata_and_header(self, write_legacy_agent, loader) -> None:
        directory = write_legacy_agent(
            Scope.USER,
            "api-designer",
            metadata=_METADATA,
            body="""\
                ---
                description: Designs REST and RPC APIs
                color: blue
                ---

                # API Designer
            """,
        )

        definition = loader.load_strict(directory, Scope.USER)

        assert definition.identifier == "api-designer"
        assert definition.source_layout is SourceLayout.DIRECTORY_WITH_SIDECARS
        assert definition.description == "Designs REST and RPC APIs"
        assert definition.version == "2.1.0"
        assert definition.header["author"] == "Platform Team"
        assert definition.header["color"] == "blue"
        assert definition.tools == ["Read", "Write"]
        assert definition.tags == ["api", "design"]
        assert definition.body == "# API Designer"

    def test_empty_header_value_does_not_override_metadata(self, write_legacy_agent, loader) -> None:
        directory = write_legacy_agent(
            Scope.USER,
            "api-designer",
            metadata=_METADATA,
            body="---\ndescription: ''\n---\nBody\n",
        )

        definition = loader.load_strict(directory, Scope.USER)

        assert definition.description == "Designs HTTP APIs"

    def test_body_without_header(self, write_legacy_agent, loader) -> None:
        directory = write_legacy_agent(
            Scope.USER, "api-designer", metadata=_METADATA, body="# Only a body\n"
        )

        definition = loader.load_strict(directory, Scope.USER)

        assert definition.description == "Designs HTTP APIs"
        assert definition.body == "# Only a body"

    def test_hooks_sidecar(self, write_legacy_agent, loader) -> None:
        directory = write_legacy_agent(
            Scope.USER, "api-designer", metadata=_METADATA, body="Body\n"
        )
        (directory / "hooks.json").write_text(
            json.dumps({"recommended": ["pre-commit", "post-edit"]}), encoding="utf-8"
        )

        definition = loader.load_strict(directory, Scope.USER)

        assert definition.header["hooksRecommended"] == ["pre-commit", "post-edit"]

    def test_malformed_hooks_sidecar_is_ignored(self, write_legacy_agent, loader) -> None:
        directory = write_legacy_agent(
            Scope.USER, "api-designer", metadata=_METADATA, body="Body\n"
        )
        (directory / "hooks.json").write_text("{oops", encoding="utf-8")

        definition = loader.load_strict(directory, Scope.USER)

        assert "hooksRecommended" not in definition.header

    def test_hooks_sidecar_not_utf8_is_ignored(self, write_legacy_agent, loader) -> None:
        directory = write_legacy_agent(
            Scope.USER, "api-designer", metadata=_METADATA, body="Body\n"
        )
        (directory / "hooks.json").write_bytes(b"\xff\xfe[1]")

        definition = loader.load_strict(directory, Scope.USER)

        assert definition.description == "Designs HTTP APIs"
        assert "hooksRecommended" not in definition.header

    def test_metadata_not_utf8(self, write_legacy_agent, loader) -> None:
        directory = write_legacy_agent(Scope.USER, "api-designer", body="Body\n")
        (directory / "metadata.json").write_bytes(b"\xff\xfe{}")

        with pytest.raises(LoadError) as excinfo:
            loader.load_strict(directory, Scope.USER)

        assert excinfo.value.kind is LoadErrorKind.MALFORMED_METADATA

    def test_no_description_anywhere(self, write_legacy_agent, loader) -> None:
        directory = write_legacy_agent(
            Scope.USER, "bare-agent", metadata={}, body="Just a body.\n"
        )

        result = loader.try_load(directory, Scope.USER)

        assert result.definition is None
        assert isinstance(result.error, LoadError)
        assert result.error.kind is LoadErrorKind.MALFORMED_METADATA

    def test_description_from_body_header_only(
        self, write_legacy_agent, write_agent, loader
    ) -> None:
        directory = write_legacy_agent(
            Scope.USER,
            "api-designer",
            metadata={},
            body="---\ndescription: Designs APIs\n---\nBody\n",
        )

        definition = loader.load_strict(directory, Scope.USER)
        copy = write_agent(Scope.PROJECT, "api-designer", definition.raw_text)

        reloaded = loader.load_strict(copy, Scope.PROJECT)
        assert reloaded.description == "Designs APIs"
        assert reloaded.body == definition.body

    def test_missing_metadata(self, write_legacy_agent, loader) -> None:
        directory = write_legacy_agent(Scope.USER, "api-designer", body="Body\n")

        with pytest.raises(LoadError) as excinfo:
            loader.load_strict(directory, Scope.USER)

        assert excinfo.value.kind is LoadErrorKind.MISSING_FILE

    def test_missing_body(self, write_legacy_agent, loader) -> None:
        directory = write_legacy_agent(Scope.USER, "api-designer", metadata=_METADATA)

        with pytest.raises(LoadError) as excinfo:
            loader.load_strict(directory, Scope.USER)

        assert excinfo.value.kind is LoadErrorKind.MISSING_FILE

    def test_malformed_metadata(self, write_legacy_agent, loader) -> None:
        directory = write_legacy_agent(Scope.USER, "api-designer", body="Body\n")
        (directory / "metadata.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(LoadError) as excinfo:
            loader.load_strict(directory, Scope.USER)

        assert excinfo.value.kind is LoadErrorKind.MALFORMED_METADATA

    def test_metadata_must_be_an_object(self, write_legacy_agent, loader) -> None:
        directory = write_legacy_agent(Scope.USER, "api-designer", body="Body\n")
        (directory / "metadata.json").write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(LoadError) as excinfo:
            loader.load_strict(directory, Scope.USER)

        assert excinfo.value.kind is LoadErrorKind.MALFORMED_METADATA

    def test_raw_text_reparses_to_same_header_and_body(self, write_legacy_agent, loader) -> None:
        directory = write_legacy_agent(
            Scope.USER,
            "api-designer",
            metadata=_METADATA,
            body="---\ncolor: blue\n---\n\n# API Designer\n\nSteps.\n",
        )

        definition = loader.load_strict(directory, Scope.USER)
        reparsed = parse_document(definition.raw_text)

        assert reparsed.status is HeaderStatus.STRICT
        assert reparsed.header == definition.header
        assert reparsed.body == definition.body


# ── Discovery ────────────────────────────────────────────────────────


class TestCandidates:
    def test_missing_directory(self, paths: ScopePaths, loader: DefinitionLoader) -> None:
        assert loader.candidates(paths.agents_dir(Scope.USER)) == []

    def test_sorted_with_single_file_first(
        self, paths: ScopePaths, write_agent, write_legacy_agent, loader
    ) -> None:
        write_agent(Scope.USER, "zeta-agent")
        write_agent(Scope.USER, "alpha-agent")
        write_legacy_agent(Scope.USER, "alpha-agent", metadata=_METADATA, body="Body\n")
        agents_dir = paths.agents_dir(Scope.USER)
        (agents_dir / "notes.txt").write_text("ignored", encoding="utf-8")
        (agents_dir / "empty-dir").mkdir()

        candidates = loader.candidates(agents_dir)

        assert [(c.identifier, c.layout) for c in candidates] == [
            ("alpha-agent", SourceLayout.SINGLE_FILE),
            ("alpha-agent", SourceLayout.DIRECTORY_WITH_SIDECARS),
            ("zeta-agent", SourceLayout.SINGLE_FILE),
        ]

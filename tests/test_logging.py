from __future__ import annotations

import json
import logging

import pytest
from agentsync_core.logging import get_logger, setup_logging


class TestLogging:
    def test_child_logger_namespace(self) -> None:
        assert get_logger("agents.loader").name == "agentsync.agents.loader"

    def test_json_output_carries_context(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging("INFO", json_output=True)

        get_logger("agents.reconcile").warning(
            "Skipping %s", "agent-two.md", extra={"scope": "user", "identifier": "agent-two"}
        )

        payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "agentsync.agents.reconcile"
        assert payload["msg"] == "Skipping agent-two.md"
        assert payload["scope"] == "user"
        assert payload["identifier"] == "agent-two"
        assert "path" not in payload

    def test_second_call_only_changes_level(self) -> None:
        logger = setup_logging("INFO")
        handlers = list(logger.handlers)

        setup_logging("DEBUG")

        assert logger.handlers == handlers
        assert logger.level == logging.DEBUG

"""Tests for the JSON log formatter."""

from __future__ import annotations

import json
import logging

from ownerproof.logging_config import JsonFormatter, configure_logging


class TestJsonFormatter:
    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord(
            name="ownerproof.core.orchestrator",
            level=logging.WARNING,
            pathname=__file__,
            lineno=1,
            msg="Run %s failed",
            args=("op-1",),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_one_json_object_per_line(self):
        line = JsonFormatter().format(self._record())
        payload = json.loads(line)
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "ownerproof.core.orchestrator"
        assert payload["msg"] == "Run op-1 failed"
        assert "\n" not in line

    def test_context_fields_included(self):
        payload = json.loads(JsonFormatter().format(self._record(run_id="op-1", stage="publish")))
        assert payload["run_id"] == "op-1"
        assert payload["stage"] == "publish"
        assert "route" not in payload


class TestConfigureLogging:
    def test_replaces_root_handlers(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging("debug", json_output=True)
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JsonFormatter)
            assert root.level == logging.DEBUG
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers = saved_handlers
            root.setLevel(saved_level)

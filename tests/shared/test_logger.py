"""Tests for shared/logger.py — structlog setup and identity masking."""

from __future__ import annotations

import json
import logging

import structlog

import shared.logger as logger_mod


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.messages: list[str] = []

    def emit(self, record):
        self.messages.append(record.getMessage())


class TestMaskIdentifiers:
    def test_masks_top_level_fields(self):
        event = {"event": "saved", "passport_number": "X1234567", "sevis_id": "N0001", "status": "EMPLOYED"}
        out = logger_mod.mask_identifiers(None, "info", dict(event))
        assert out["passport_number"] == logger_mod.MASKED
        assert out["sevis_id"] == logger_mod.MASKED
        assert out["status"] == "EMPLOYED"

    def test_masks_nested_dict(self):
        event = {"event": "saved", "profile": {"email": "a@b.c", "name": "Ana"}}
        out = logger_mod.mask_identifiers(None, "info", event)
        assert out["profile"] == {"email": logger_mod.MASKED, "name": "Ana"}

    def test_empty_values_left_alone(self):
        out = logger_mod.mask_identifiers(None, "info", {"event": "x", "email": None})
        assert out["email"] is None


class TestConfigureLogging:
    def teardown_method(self):
        structlog.reset_defaults()
        logger_mod._configured = False

    def test_level_from_argument(self):
        logger_mod.configure_logging("warning")
        assert logging.getLogger().level == logging.WARNING

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("TRACKER_LOG_LEVEL", "DEBUG")
        logger_mod.configure_logging()
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        logger_mod.configure_logging("nonsense")
        assert logging.getLogger().level == logging.INFO

    def test_json_output_masks_and_binds_component(self):
        logger_mod.configure_logging("INFO", json_output=True)
        captured = _ListHandler()
        logging.getLogger().addHandler(captured)
        try:
            log = logger_mod.get_logger(component="storage")
            log.info("profile_saved", passport_number="X1234567", status="EMPLOYED")
        finally:
            logging.getLogger().removeHandler(captured)

        record = json.loads(captured.messages[-1])
        assert record["event"] == "profile_saved"
        assert record["component"] == "storage"
        assert record["passport_number"] == logger_mod.MASKED
        assert record["status"] == "EMPLOYED"

    def test_get_logger_configures_on_first_use(self):
        logger_mod._configured = False
        logger_mod.get_logger()
        assert logger_mod._configured is True

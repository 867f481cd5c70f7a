"""
Tests for structured JSON logging setup.
"""

import json
import logging

from evm_engine.core.logging_config import CustomJsonFormatter, get_logger, setup_logging


def _read_records(path):
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


class TestSetupLogging:
    def test_file_handler_writes_json(self, tmp_path):
        log_file = tmp_path / "logs" / "engine.json"
        logger = setup_logging(
            name="evm_engine.tests.file",
            log_file=str(log_file),
            level="DEBUG",
            environment="testnet",
            enable_console=False,
        )
        logger.info("Arguments decoded", extra={"event": "args.decoded", "record": "FunctionCallArgs"})
        for handler in logger.handlers:
            handler.flush()

        [record] = _read_records(log_file)
        assert record["message"] == "Arguments decoded"
        assert record["level"] == "info"
        assert record["name"] == "evm_engine.tests.file"
        assert record["environment"] == "testnet"
        assert record["service"] == "evm_engine"
        assert record["event"] == "args.decoded"
        assert record["record"] == "FunctionCallArgs"
        assert record["timestamp"]
        assert record["source"]["function"] == "test_file_handler_writes_json"

    def test_level_filters_records(self, tmp_path):
        log_file = tmp_path / "engine.json"
        logger = setup_logging(
            name="evm_engine.tests.level",
            log_file=str(log_file),
            level="WARNING",
            enable_console=False,
        )
        logger.info("dropped")
        logger.warning("kept")
        for handler in logger.handlers:
            handler.flush()
        assert [r["message"] for r in _read_records(log_file)] == ["kept"]

    def test_repeated_setup_does_not_duplicate_handlers(self):
        name = "evm_engine.tests.repeat"
        setup_logging(name=name, enable_file=False)
        logger = setup_logging(name=name, enable_file=False)
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, CustomJsonFormatter)

    def test_unwritable_log_file_keeps_console(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        logger = setup_logging(
            name="evm_engine.tests.unwritable",
            log_file=str(blocker / "engine.json"),
        )
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)


class TestGetLogger:
    def test_configures_once(self):
        first = get_logger("evm_engine.tests.get")
        handlers = list(first.handlers)
        second = get_logger("evm_engine.tests.get", level="DEBUG")
        assert second is first
        assert second.handlers == handlers

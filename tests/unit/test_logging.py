"""Tests for logging setup and the context logger."""

import json
import logging

from ga4_foundry.lib.logging import GeneratorLogger, JSONFormatter, setup_logging


def _record(msg="Planned 3 day(s)", **extra):
    record = logging.LogRecord("ga4_foundry.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "ga4_foundry.test"
        assert data["message"] == "Planned 3 day(s)"
        assert data["timestamp"].endswith("Z")
        assert "extra" not in data

    def test_extra_fields(self):
        data = json.loads(JSONFormatter().format(_record(property_name="main")))
        assert data["extra"] == {"property_name": "main"}

    def test_excluded_fields(self):
        formatter = JSONFormatter(exclude_fields=["secret"])
        data = json.loads(formatter.format(_record(secret="x", run_date="2025-03-10")))
        assert data["extra"] == {"run_date": "2025-03-10"}


class TestGeneratorLogger:
    """Tests for GeneratorLogger context."""

    def test_context_in_records(self, caplog):
        logger = GeneratorLogger("ga4_foundry.test")
        logger.set_context(property_name="main", run_date="2025-03-10")
        with caplog.at_level(logging.INFO, logger="ga4_foundry.test"):
            logger.info("Rendering %s", "projection")

        record = caplog.records[-1]
        assert record.getMessage() == "Rendering projection"
        assert record.property_name == "main"
        assert record.run_date == "2025-03-10"

    def test_clear_context(self, caplog):
        logger = GeneratorLogger("ga4_foundry.test")
        logger.set_context(property_name="main")
        logger.clear_context()
        with caplog.at_level(logging.WARNING, logger="ga4_foundry.test"):
            logger.warning("No day in scope")
        assert not hasattr(caplog.records[-1], "property_name")


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_verbose_sets_debug(self):
        setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_json_format(self):
        setup_logging(json_format=True)
        handlers = logging.getLogger().handlers
        assert any(isinstance(h.formatter, JSONFormatter) for h in handlers)

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "run.log"
        setup_logging(log_file=str(log_file))
        logging.getLogger("ga4_foundry.test").info("written")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "written" in log_file.read_text()

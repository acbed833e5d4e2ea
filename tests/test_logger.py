"""
Tests for loguru configuration
"""

from types import SimpleNamespace

from loguru import logger

from speechwire.utils import logger_config
from speechwire.utils.logger_config import configure_logger, make_component_filter, reset_logger


def record(level: str, component: str = ""):
    return {"level": SimpleNamespace(no=logger.level(level).no), "extra": {"component": component}}


class TestComponentFilter:

    def test_level_threshold(self):
        component_filter = make_component_filter("INFO", [])
        assert component_filter(record("INFO", "RecognitionExchange"))
        assert not component_filter(record("DEBUG", "RecognitionExchange"))

    def test_debug_components_match_by_prefix(self):
        component_filter = make_component_filter("INFO", ["SynthesisSession"])
        assert component_filter(record("DEBUG", "SynthesisSession-3f2a"))
        assert not component_filter(record("DEBUG", "WebSocketTransport"))

    def test_missing_component(self):
        component_filter = make_component_filter("WARNING", ["SynthesisSession"])
        assert not component_filter({"level": SimpleNamespace(no=20), "extra": {}})


class TestConfigureLogger:

    def teardown_method(self):
        reset_logger()

    def test_configure_once(self, monkeypatch):
        monkeypatch.delenv("SPEECHWIRE_LOG_MODE", raising=False)
        reset_logger()

        configure_logger(level="WARNING")
        assert logger_config._configured
        # Second call without force is a no-op
        configure_logger(level="DEBUG")
        assert logger_config._configured

    def test_file_logging(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SPEECHWIRE_LOG_MODE", "file")
        assert logger_config.is_file_logging_enabled()

        configure_logger(log_dir=str(tmp_path / "logs"), force=True)
        logger.bind(component="test").info("hello file")
        logger.complete()

        files = list((tmp_path / "logs").glob("speechwire_*.log"))
        assert files
        assert "hello file" in files[0].read_text(encoding="utf-8")

"""Tests for configuration settings."""
import json
import logging
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

from config import Settings
from config.settings import JSONFormatter


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate settings from the caller's environment and .env file."""
    for name in ("HOST", "PORT", "CACHE_DIR", "ORIGIN_URL", "LOG_LEVEL", "DEBUG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def required(tmp_path) -> dict:
    return {"host": "localhost", "port": 3000, "cache_dir": tmp_path / "cache"}


class TestSettings:
    """Test Settings configuration."""

    def test_default_settings(self, clean_env):
        settings = Settings(**required(clean_env))

        assert settings.app_name == "HTTP Cat Cache"
        assert settings.app_version == "0.1.0"
        assert settings.debug is False

        assert settings.host == "localhost"
        assert settings.port == 3000
        assert settings.cache_dir == (clean_env / "cache").resolve()

        assert settings.origin_url == "https://http.cat"
        assert settings.origin_timeout == 10.0

        assert settings.log_level == "INFO"
        assert settings.log_json is False
        assert settings.log_file is None

    @pytest.mark.parametrize("missing", ["host", "port", "cache_dir"])
    def test_required_fields(self, clean_env, missing):
        values = required(clean_env)
        del values[missing]

        with pytest.raises(ValidationError) as exc_info:
            Settings(**values)

        assert missing in str(exc_info.value)

    def test_env_override(self, clean_env, monkeypatch):
        monkeypatch.setenv("HOST", "0.0.0.0")
        monkeypatch.setenv("PORT", "9000")
        monkeypatch.setenv("CACHE_DIR", "/custom/cache")
        monkeypatch.setenv("ORIGIN_URL", "http://mirror.test/cats/")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = Settings()

        assert settings.host == "0.0.0.0"
        assert settings.port == 9000
        assert settings.cache_dir == Path("/custom/cache").resolve()
        assert settings.origin_url == "http://mirror.test/cats"
        assert settings.log_level == "DEBUG"

    def test_cache_dir_resolved_to_absolute(self, clean_env):
        settings = Settings(host="localhost", port=3000, cache_dir="data/cache")

        assert settings.cache_dir.is_absolute()
        assert settings.cache_dir == (clean_env / "data" / "cache").resolve()

    def test_empty_cache_dir_rejected(self, clean_env):
        with pytest.raises(ValidationError):
            Settings(host="localhost", port=3000, cache_dir="  ")

    @pytest.mark.parametrize("port", [0, -1, 65536])
    def test_invalid_port(self, clean_env, port):
        with pytest.raises(ValidationError):
            Settings(host="localhost", port=port, cache_dir=clean_env)

    def test_settings_are_frozen(self, clean_env):
        settings = Settings(**required(clean_env))

        with pytest.raises(ValidationError):
            settings.port = 1234

    def test_origin_url_for(self, clean_env):
        settings = Settings(**required(clean_env), origin_url="https://http.cat/")

        assert settings.origin_url_for("418") == "https://http.cat/418"

    def test_log_level_numeric(self, clean_env):
        settings = Settings(**required(clean_env), log_level="ERROR")
        assert settings.log_level_numeric == logging.ERROR

    def test_configure_logging_console(self, clean_env):
        settings = Settings(**required(clean_env), log_level="INFO", log_json=False)
        settings.configure_logging()

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO

        stream_handlers = [h for h in root_logger.handlers if isinstance(h, logging.StreamHandler)]
        assert len(stream_handlers) > 0
        assert stream_handlers[0].formatter._fmt == settings.log_format

    def test_configure_logging_json(self, clean_env, capsys):
        settings = Settings(**required(clean_env), log_level="INFO", log_json=True)
        settings.configure_logging()

        logging.getLogger("test_logger").info("Test JSON message")

        captured = capsys.readouterr()
        assert '"message": "Test JSON message"' in captured.out
        assert '"level": "INFO"' in captured.out
        assert '"logger": "test_logger"' in captured.out

    def test_configure_logging_file(self, clean_env):
        log_file = clean_env / "logs" / "cache.log"
        settings = Settings(**required(clean_env), log_file=log_file)
        settings.configure_logging()

        logging.getLogger("test_logger").info("Test file message")

        assert log_file.exists()
        assert "Test file message" in log_file.read_text()

    def test_configure_logging_debug_mode(self, clean_env):
        settings = Settings(**required(clean_env), debug=True)
        settings.configure_logging()

        assert logging.getLogger("http_cat_cache").level == logging.DEBUG

    def test_env_file_loading(self, clean_env):
        (clean_env / ".env").write_text("""
HOST=127.0.0.1
PORT=8081
CACHE_DIR=/env/file/cache
LOG_LEVEL=WARNING
""")

        settings = Settings()

        assert settings.host == "127.0.0.1"
        assert settings.port == 8081
        assert settings.cache_dir == Path("/env/file/cache").resolve()
        assert settings.log_level == "WARNING"

    def test_configure_logging_quiets_request_loggers(self, clean_env):
        settings = Settings(**required(clean_env))
        settings.configure_logging()

        for name in ("httpx", "httpcore", "uvicorn.access"):
            assert logging.getLogger(name).level == logging.WARNING


class TestJSONFormatter:
    def test_includes_exception(self):
        try:
            raise RuntimeError("disk on fire")
        except RuntimeError:
            record = logging.getLogger("test_logger").makeRecord(
                "test_logger", logging.ERROR, __file__, 1, "write failed", None, sys.exc_info()
            )

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "write failed"
        assert payload["level"] == "ERROR"
        assert "RuntimeError: disk on fire" in payload["exception"]

"""Tests for environment-driven settings."""

import importlib
import logging
from unittest.mock import patch

import pytest

import skillgraph.utils.config as config


@pytest.fixture
def reload_config():
    """Re-import the config module under a patched environment, then restore it."""
    def _reload(env):
        with patch.dict("os.environ", env):
            return importlib.reload(config)
    yield _reload
    importlib.reload(config)


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, reload_config):
        mod = reload_config({"EMBEDDING_TIMEOUT": "300"})
        s = mod.Settings()
        assert s.EMBEDDING_TIMEOUT == 300
        assert s.OPENAI_MAX_RETRIES >= 0
        assert s.LOG_LEVEL

    def test_from_env(self, reload_config):
        mod = reload_config({
            "DB_URL": "sqlite:///tmp/x.db",
            "EMBEDDING_BINDING": "ollama",
            "EMBEDDING_DIM": "768",
            "EMBEDDING_BINDING_HOST": "http://gpu:11434",
            "OPENAI_TIMEOUT": "12",
        })
        s = mod.settings
        assert s.DB_URL == "sqlite:///tmp/x.db"
        assert s.EMBEDDING_BINDING == "ollama"
        assert s.EMBEDDING_DIM == 768
        assert s.EMBEDDING_BINDING_HOST == "http://gpu:11434"
        assert s.OPENAI_TIMEOUT == 12

    def test_blank_dimension_means_unset(self, reload_config):
        mod = reload_config({"EMBEDDING_DIM": "  "})
        assert mod.settings.EMBEDDING_DIM is None

    def test_int_or_none(self):
        assert config._int_or_none("42") == 42
        assert config._int_or_none("") is None
        assert config._int_or_none(None) is None


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_explicit_level(self):
        with patch("logging.basicConfig") as basic:
            config.configure_logging("debug")
        basic.assert_called_once_with(level="DEBUG", format=config.LOG_FORMAT)

    def test_level_from_settings(self):
        with patch("logging.basicConfig") as basic, patch.object(config.settings, "LOG_LEVEL", "warning"):
            config.configure_logging()
        assert basic.call_args.kwargs["level"] == "WARNING"
        assert logging.getLevelName("WARNING") == logging.WARNING

"""Tests for configuration loading."""

from pathlib import Path

import pytest

from bookrank.config import Config, get_config, reset_config


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every BOOKRANK_ variable."""
    for name in (
        "BOOKRANK_DB_PATH",
        "BOOKRANK_CACHE_BACKEND",
        "BOOKRANK_LOG_LEVEL",
        "BOOKRANK_ECHO_SQL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestFromEnv:
    """Tests for Config.from_env."""

    def test_defaults(self, clean_env):
        """Test defaults when nothing is set."""
        config = Config.from_env()

        assert config.db_path == Path.home() / ".bookrank" / "books.db"
        assert config.cache_backend == "memory"
        assert config.log_level == "WARNING"
        assert config.echo_sql is False

    def test_overrides(self, clean_env, tmp_path):
        """Test reading values from the environment."""
        clean_env.setenv("BOOKRANK_DB_PATH", str(tmp_path / "books.db"))
        clean_env.setenv("BOOKRANK_CACHE_BACKEND", "NONE")
        clean_env.setenv("BOOKRANK_LOG_LEVEL", "debug")
        clean_env.setenv("BOOKRANK_ECHO_SQL", "true")

        config = Config.from_env()

        assert config.db_path == tmp_path / "books.db"
        assert config.cache_backend == "none"
        assert config.log_level == "DEBUG"
        assert config.echo_sql is True

    def test_memory_db(self, clean_env):
        """Test detecting an in-memory database."""
        clean_env.setenv("BOOKRANK_DB_PATH", ":memory:")
        assert Config.from_env().is_memory_db


class TestValidate:
    """Tests for Config.validate."""

    def test_valid(self, tmp_path):
        """Test that a sane configuration has no errors."""
        config = Config(
            db_path=tmp_path / "books.db",
            echo_sql=False,
            cache_backend="memory",
            log_level="INFO",
        )
        assert config.validate() == []

    def test_creates_db_directory(self, tmp_path):
        """Test that a missing database directory is created."""
        config = Config(
            db_path=tmp_path / "nested" / "books.db",
            echo_sql=False,
            cache_backend="memory",
            log_level="INFO",
        )
        assert config.validate() == []
        assert (tmp_path / "nested").is_dir()

    def test_invalid_values(self):
        """Test that unknown backends and levels are reported."""
        config = Config(
            db_path=Path(":memory:"),
            echo_sql=False,
            cache_backend="redis",
            log_level="LOUD",
        )
        errors = config.validate()

        assert len(errors) == 2
        assert "redis" in errors[0]
        assert "LOUD" in errors[1]


class TestGlobalConfig:
    """Tests for the process-wide config."""

    def test_singleton(self):
        """Test that get_config caches its instance."""
        assert get_config() is get_config()

    def test_reset(self, monkeypatch):
        """Test that reset_config reloads the environment."""
        first = get_config()
        monkeypatch.setenv("BOOKRANK_LOG_LEVEL", "ERROR")
        reset_config()
        assert get_config() is not first
        assert get_config().log_level == "ERROR"

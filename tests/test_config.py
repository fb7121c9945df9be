"""Tests for configuration loading."""

from pathlib import Path

import pytest

from circulation.config import Config, get_config, reset_config


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "LIBRARY_DB_PATH",
        "LIBRARY_DATA_DIR",
        "LIBRARY_STORE_TIMEOUT",
        "LIBRARY_LOG_FILE",
        "LIBRARY_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestFromEnv:
    """Tests for reading the environment."""

    def test_defaults_follow_db_path(self, clean_env, tmp_path):
        clean_env.setenv("LIBRARY_DB_PATH", str(tmp_path / "lib.db"))

        config = Config.from_env()

        assert config.db_path == tmp_path / "lib.db"
        assert config.data_dir == tmp_path
        assert config.log_file == tmp_path / "library_log.txt"
        assert config.store_timeout == 5.0
        assert config.log_level == "INFO"

    def test_overrides(self, clean_env, tmp_path):
        clean_env.setenv("LIBRARY_DB_PATH", str(tmp_path / "lib.db"))
        clean_env.setenv("LIBRARY_DATA_DIR", str(tmp_path / "files"))
        clean_env.setenv("LIBRARY_STORE_TIMEOUT", "0.5")
        clean_env.setenv("LIBRARY_LOG_LEVEL", "debug")

        config = Config.from_env()

        assert config.data_dir == tmp_path / "files"
        assert config.books_file == tmp_path / "files" / "books.txt"
        assert config.loans_file == tmp_path / "files" / "borrowings.txt"
        assert config.members_file == tmp_path / "files" / "members.txt"
        assert config.store_timeout == 0.5
        assert config.log_level == "DEBUG"

    def test_global_config_is_cached(self, clean_env, tmp_path):
        clean_env.setenv("LIBRARY_DB_PATH", str(tmp_path / "lib.db"))

        first = get_config()
        assert get_config() is first

        reset_config()
        assert get_config() is not first


class TestValidate:
    """Tests for configuration validation."""

    def test_creates_directories(self, config):
        assert config.validate() == []
        assert config.data_dir.is_dir()

    def test_rejects_bad_timeout(self, config):
        config.store_timeout = 0
        assert any("timeout" in e for e in config.validate())

    def test_rejects_unknown_level(self, config):
        config.log_level = "LOUD"
        assert config.validate() == ["Unknown log level: LOUD"]

    def test_uncreatable_directory(self, config, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        config.data_dir = Path(blocker) / "data"

        assert config.validate() == [f"Cannot create directory: {config.data_dir}"]

"""Tests for path utilities."""

import os
from pathlib import Path
from unittest.mock import patch

from b24_contact_sync.utils.paths import (
    CACHE_DIR_ENV_VAR,
    CONFIG_DIR_ENV_VAR,
    DEFAULT_CONFIG_DIR,
    resolve_cache_dir,
    resolve_config_dir,
)


class TestDefaultConfigDir:
    """Test DEFAULT_CONFIG_DIR constant."""

    def test_default_config_dir_is_in_home(self):
        """Default config dir should be in user's home directory."""
        assert Path.home() / ".b24-contact-sync" == DEFAULT_CONFIG_DIR


class TestResolveConfigDir:
    """Test resolve_config_dir function."""

    def test_explicit_path_string(self, tmp_path):
        assert resolve_config_dir(str(tmp_path)) == tmp_path.resolve()

    def test_explicit_path_with_tilde(self):
        result = resolve_config_dir("~/custom-config")
        assert result == (Path.home() / "custom-config").resolve()

    def test_environment_variable(self, tmp_path):
        with patch.dict(os.environ, {CONFIG_DIR_ENV_VAR: str(tmp_path)}):
            assert resolve_config_dir() == tmp_path.resolve()

    def test_explicit_path_beats_environment(self, tmp_path):
        explicit = tmp_path / "explicit"
        with patch.dict(os.environ, {CONFIG_DIR_ENV_VAR: str(tmp_path / "env")}):
            assert resolve_config_dir(explicit) == explicit.resolve()

    def test_default_without_environment(self):
        with patch.dict(os.environ, {}, clear=True):
            assert resolve_config_dir() == DEFAULT_CONFIG_DIR.resolve()


class TestResolveCacheDir:
    """Test resolve_cache_dir function."""

    def test_default_is_cache_in_working_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv(CACHE_DIR_ENV_VAR, raising=False)

        assert resolve_cache_dir() == (tmp_path / "cache").resolve()

    def test_environment_variable(self, tmp_path):
        with patch.dict(os.environ, {CACHE_DIR_ENV_VAR: str(tmp_path / "snap")}):
            assert resolve_cache_dir() == (tmp_path / "snap").resolve()

    def test_explicit_path(self, tmp_path):
        assert resolve_cache_dir(tmp_path / "x") == (tmp_path / "x").resolve()

    def test_directory_not_created(self, tmp_path):
        resolve_cache_dir(tmp_path / "later")
        assert not (tmp_path / "later").exists()

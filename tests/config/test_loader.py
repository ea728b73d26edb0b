"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from tokenscope.config.loader import (
    GLOBAL_CONFIG_PATH,
    REPO_CONFIG_RELPATH,
    _deep_merge,
    config_paths,
    _load_yaml,
    load_config,
)
from tokenscope.config.models import LoggingConfig
from tokenscope.core.errors import ConfigError, ErrorCode


def _write_repo_config(repo: Path, content: str) -> None:
    config_path = repo / REPO_CONFIG_RELPATH
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(content)


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        """Loads valid YAML content."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("scan:\n  max_workers: 2\n")

        assert _load_yaml(yaml_file) == {"scan": {"max_workers": 2}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        """Returns empty dict for empty file."""
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("logging:\n  level:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        """A top-level list is not a config."""
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_override_wins(self) -> None:
        """Override values replace base values."""
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_merge(self) -> None:
        """Nested dicts are merged recursively."""
        base = {"scan": {"max_workers": 4, "max_file_size_kb": 512}}
        override = {"scan": {"max_workers": 8}}
        assert _deep_merge(base, override) == {"scan": {"max_workers": 8, "max_file_size_kb": 512}}

    def test_override_replaces_non_dict(self) -> None:
        """Non-dict override replaces dict base."""
        base: dict[str, Any] = {"a": {"nested": 1}}
        override: dict[str, Any] = {"a": "simple"}
        assert _deep_merge(base, override) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        """Base dict is not mutated."""
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert base == {"a": 1}


class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_default_config_when_no_files(self, tmp_path: Path) -> None:
        """Returns default config when no config files exist."""
        with patch("tokenscope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)
        assert config.logging.level == "INFO"
        assert config.scan.max_workers == 4
        assert config.watcher.enabled is True

    def test_loads_repo_config(self, tmp_path: Path) -> None:
        """Loads config from the repo .tokenscope directory."""
        _write_repo_config(tmp_path, "scan:\n  extra_ignored_dirs: [generated]\n")

        with patch("tokenscope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)
        assert config.scan.extra_ignored_dirs == ["generated"]

    def test_repo_config_overrides_global(self, tmp_path: Path) -> None:
        """Repo YAML wins over global YAML, key by key."""
        global_path = tmp_path / "global.yaml"
        global_path.write_text("scan:\n  max_workers: 2\n  max_file_size_kb: 64\n")
        repo = tmp_path / "repo"
        _write_repo_config(repo, "scan:\n  max_workers: 6\n")

        with patch("tokenscope.config.loader.GLOBAL_CONFIG_PATH", global_path):
            config = load_config(repo)
        assert config.scan.max_workers == 6
        assert config.scan.max_file_size_kb == 64

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        """Environment variables override YAML config."""
        _write_repo_config(tmp_path, "logging:\n  level: INFO\n")

        with (
            patch("tokenscope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch.dict(os.environ, {"TOKENSCOPE__LOGGING__LEVEL": "WARNING"}),
        ):
            config = load_config(tmp_path)
        assert config.logging.level == "WARNING"

    def test_kwargs_override_all(self, tmp_path: Path) -> None:
        """Keyword arguments override everything."""
        with patch("tokenscope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path, logging=LoggingConfig(level="ERROR"))
        assert config.logging.level == "ERROR"

    def test_raises_config_error_for_invalid_value(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid config values."""
        _write_repo_config(tmp_path, "scan:\n  max_workers: 0\n")

        with (
            patch("tokenscope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            pytest.raises(ConfigError) as exc_info,
        ):
            load_config(tmp_path)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE


class TestGlobalConfigPath:
    """Tests for GLOBAL_CONFIG_PATH constant."""

    def test_is_in_user_config(self) -> None:
        """Path is in the user config directory."""
        assert isinstance(GLOBAL_CONFIG_PATH, Path)
        assert "tokenscope" in str(GLOBAL_CONFIG_PATH)

    def test_config_paths_order(self, tmp_path: Path) -> None:
        """Global file first, workspace file last (it wins the merge)."""
        assert config_paths(tmp_path) == [GLOBAL_CONFIG_PATH, tmp_path / REPO_CONFIG_RELPATH]


class TestValidationErrors:
    """Tests for how validation failures are reported."""

    def test_single_error_names_field(self, tmp_path: Path) -> None:
        _write_repo_config(tmp_path, "scan:\n  max_workers: 0\n")

        with (
            patch("tokenscope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            pytest.raises(ConfigError) as exc_info,
        ):
            load_config(tmp_path)

        assert exc_info.value.details["field"] == "scan.max_workers"
        assert exc_info.value.details["value"] == "0"

    def test_every_failing_field_reported(self, tmp_path: Path) -> None:
        """Several bad values are listed together in the reason."""
        _write_repo_config(
            tmp_path, "scan:\n  max_workers: 0\nlogging:\n  level: LOUD\n"
        )

        with (
            patch("tokenscope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            pytest.raises(ConfigError) as exc_info,
        ):
            load_config(tmp_path)

        reason = exc_info.value.details["reason"]
        assert "scan.max_workers" in reason
        assert "logging.level" in reason

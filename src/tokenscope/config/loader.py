"""Configuration loading with pydantic-settings.

Sources, lowest to highest precedence:
1. Built-in defaults (``tokenscope.config.models``)
2. Global YAML (~/.config/tokenscope/config.yaml)
3. Workspace YAML (<root>/.tokenscope/config.yaml)
4. Environment variables (TOKENSCOPE__SECTION__KEY)
5. Keyword arguments to ``load_config``

YAML files are deep-merged section by section, so a workspace file that
only sets ``scan.max_workers`` keeps every other global setting.
"""

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from tokenscope.config.models import (
    LoggingConfig,
    ScanConfig,
    TokenScopeConfig,
    WatcherConfig,
)
from tokenscope.core.errors import ConfigError

logger = structlog.get_logger()

GLOBAL_CONFIG_PATH = Path("~/.config/tokenscope/config.yaml").expanduser()
REPO_CONFIG_RELPATH = Path(".tokenscope") / "config.yaml"

ENV_PREFIX = "TOKENSCOPE__"


def config_paths(repo_root: Path) -> list[Path]:
    """Candidate YAML files in merge order (later files win)."""
    return [GLOBAL_CONFIG_PATH, repo_root / REPO_CONFIG_RELPATH]


def _load_yaml(path: Path) -> dict[str, Any]:
    """Mapping stored in a YAML file; empty if the file is absent or blank."""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class _MergedYamlSource(PydanticBaseSettingsSource):
    """Settings source over the already merged YAML mapping."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, isinstance(value, dict)

    def __call__(self) -> dict[str, Any]:
        fields = self.settings_cls.model_fields
        return {name: value for name, value in self._data.items() if name in fields}


def _settings_class(yaml_data: dict[str, Any]) -> type[BaseSettings]:
    """Settings class bound to one load's YAML data.

    Built per call so concurrent loads for different workspaces never share
    a source.
    """

    class TokenScopeSettings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix=ENV_PREFIX,
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        scan: ScanConfig = ScanConfig()
        watcher: WatcherConfig = WatcherConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # First source wins
            return (init_settings, env_settings, _MergedYamlSource(settings_cls, yaml_data))

    return TokenScopeSettings


def _describe_errors(error: ValidationError) -> tuple[str, Any, str]:
    """(dotted field, offending input, reason) of a validation failure.

    The reason lists every failing field when there is more than one.
    """
    errors = error.errors()
    first = errors[0]
    field = ".".join(str(part) for part in first["loc"])
    if len(errors) == 1:
        return field, first.get("input"), first["msg"]
    reasons = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in errors
    )
    return field, first.get("input"), reasons


def load_config(repo_root: Path | None = None, **overrides: Any) -> TokenScopeConfig:
    """Resolve the configuration for a workspace.

    Args:
        repo_root: Workspace root holding ``.tokenscope/config.yaml``.
            Defaults to the current working directory.
        **overrides: Section values that beat every other source,
            e.g. ``scan={"max_workers": 2}``.

    Raises:
        ConfigError: A YAML file is malformed or a value fails validation.
    """
    repo_root = repo_root or Path.cwd()

    yaml_data: dict[str, Any] = {}
    loaded: list[str] = []
    for path in config_paths(repo_root):
        data = _load_yaml(path)
        if data:
            yaml_data = _deep_merge(yaml_data, data)
            loaded.append(str(path))

    try:
        settings = _settings_class(yaml_data)(**overrides)
    except ValidationError as e:
        field, value, reason = _describe_errors(e)
        raise ConfigError.invalid_value(field, value, reason) from e

    logger.debug("config_loaded", repo_root=str(repo_root), sources=loaded)
    return TokenScopeConfig.model_validate(settings.model_dump())

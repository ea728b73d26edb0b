"""Config module exports."""

from tokenscope.config.loader import load_config
from tokenscope.config.models import (
    LoggingConfig,
    LogOutputConfig,
    ScanConfig,
    TokenScopeConfig,
    WatcherConfig,
)

__all__ = [
    "load_config",
    "TokenScopeConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "ScanConfig",
    "WatcherConfig",
]

"""Core module exports."""

from tokenscope.core.errors import (
    ConfigError,
    ErrorCode,
    ExtractionError,
    TokenScopeError,
)
from tokenscope.core.formats import DocumentFormat, detect_format
from tokenscope.core.logging import configure_logging, current_query_id, get_logger, query_scope

__all__ = [
    # Errors
    "TokenScopeError",
    "ConfigError",
    "ErrorCode",
    "ExtractionError",
    # Formats
    "DocumentFormat",
    "detect_format",
    # Logging
    "configure_logging",
    "current_query_id",
    "get_logger",
    "query_scope",
]

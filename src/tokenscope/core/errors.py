"""Typed errors raised by tokenscope.

Codes are grouped by thousands:
- 2xxx: configuration loading and validation
- 3xxx: per-file token extraction

Extraction errors never escape a scan. The scanner catches them per file,
logs them and skips the file.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Numeric error codes."""

    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    EXTRACTION_UNREADABLE = 3001
    EXTRACTION_PARSE_FAILED = 3002
    EXTRACTION_UNSUPPORTED = 3003

    @property
    def category(self) -> str:
        """``"config"`` or ``"extraction"``."""
        return _CATEGORIES[self.value // 1000]


_CATEGORIES: dict[int, str] = {2: "config", 3: "extraction"}


@dataclass(frozen=True, slots=True)
class TokenScopeError(Exception):
    """Base error: a code, a human message and structured details."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe form, also used as structured log fields."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "category": self.code.category,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(TokenScopeError):
    """A config file could not be read, or a setting failed validation."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Could not load config file {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, setting: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Setting '{setting}' rejected: {reason}",
            details={"field": setting, "value": str(value), "reason": reason},
        )


class ExtractionError(TokenScopeError):
    """One file could not be turned into token definitions."""

    @property
    def path(self) -> str:
        return str(self.details.get("path", ""))

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "ExtractionError":
        # I/O trouble is often transient (file mid-save, lock)
        return cls(
            code=ErrorCode.EXTRACTION_UNREADABLE,
            message=f"Could not read {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )

    @classmethod
    def parse_failed(cls, path: str, reason: str) -> "ExtractionError":
        return cls(
            code=ErrorCode.EXTRACTION_PARSE_FAILED,
            message=f"Could not decode {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def unsupported(cls, path: str) -> "ExtractionError":
        return cls(
            code=ErrorCode.EXTRACTION_UNSUPPORTED,
            message=f"No extractor is bound to {path}",
            details={"path": path},
        )

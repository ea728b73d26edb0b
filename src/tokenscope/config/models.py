"""Settings models for tokenscope.

Each section maps to a top-level YAML key and to an environment prefix
``TOKENSCOPE__<SECTION>__<KEY>``; ``tokenscope.config.loader`` merges the
sources. Values here are the defaults when nothing else sets them.

    TOKENSCOPE__LOGGING__LEVEL=DEBUG
    TOKENSCOPE__SCAN__MAX_WORKERS=8
    TOKENSCOPE__WATCHER__DEBOUNCE_SEC=0.5
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from tokenscope.core.formats import DocumentFormat, default_extensions

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["json", "console"]

_STREAMS = frozenset({"stderr", "stdout"})


class LogOutputConfig(BaseModel):
    """One log sink: a stream name or an absolute file path."""

    format: LogFormat = "console"
    destination: str = "stderr"
    # None follows LoggingConfig.level
    level: LogLevel | None = None

    @field_validator("destination")
    @classmethod
    def check_destination(cls, value: str) -> str:
        if value in _STREAMS:
            return value
        expanded = Path(value).expanduser()
        if expanded.is_absolute():
            return str(expanded)
        raise ValueError(f"log file must be an absolute path, got {value!r}")


class LoggingConfig(BaseModel):
    """Root level plus the list of sinks.

    Env vars:
        TOKENSCOPE__LOGGING__LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every extracted file.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


def _normalize_ext(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


class ScanConfig(BaseModel):
    """Workspace scan configuration.

    Env vars:
        TOKENSCOPE__SCAN__MAX_FILE_SIZE_KB: Skip files larger than this
        TOKENSCOPE__SCAN__MAX_WORKERS: Parallel extraction workers
    """

    extra_ignored_dirs: list[str] = Field(
        default_factory=list,
        description="Directory names pruned in addition to the built-in ignore set.",
    )
    script_extensions: list[str] = Field(
        default_factory=lambda: default_extensions(DocumentFormat.SCRIPT),
        description="Extensions handled by the structured-source extractor.",
    )
    document_extensions: list[str] = Field(
        default_factory=lambda: default_extensions(DocumentFormat.DOCUMENT),
        description="Extensions handled by the declarative-document extractor.",
    )
    stylesheet_extensions: list[str] = Field(
        default_factory=lambda: default_extensions(DocumentFormat.STYLESHEET),
        description="Extensions handled by the style-variable extractor.",
    )
    max_file_size_kb: int = Field(
        default=1024,
        description="Skip files larger than this (KB). Generated bundles are rarely token sources.",
    )
    max_workers: int = Field(
        default=4,
        description="Thread pool size for per-file extraction.",
    )

    @field_validator("script_extensions", "document_extensions", "stylesheet_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        return sorted({_normalize_ext(e) for e in v if e.strip()})

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v

    def extension_map(self) -> dict[DocumentFormat, frozenset[str]]:
        """Per-format extension sets, in dispatch order."""
        return {
            DocumentFormat.SCRIPT: frozenset(self.script_extensions),
            DocumentFormat.DOCUMENT: frozenset(self.document_extensions),
            DocumentFormat.STYLESHEET: frozenset(self.stylesheet_extensions),
        }


class WatcherConfig(BaseModel):
    """File watcher configuration.

    Env vars:
        TOKENSCOPE__WATCHER__ENABLED: Watch the workspace after the first scan
        TOKENSCOPE__WATCHER__DEBOUNCE_SEC: Quiet window before a rescan
    """

    enabled: bool = Field(
        default=True,
        description="Start a file watcher once the workspace root is known.",
    )
    debounce_sec: float = Field(
        default=0.3,
        description="Debounce window before triggering a rescan. "
        "Lower values rescan more often during rapid edits.",
    )
    max_debounce_wait_sec: float = Field(
        default=2.0,
        description="Upper bound on how long a burst of changes can delay a rescan.",
    )


class TokenScopeConfig(BaseModel):
    """Root configuration for tokenscope."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)

"""Scan configuration schema."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fastscan.errors import ConfigError

PrefixMode = Literal["anchored", "substring"]

# Flush thresholds are sized in "records" of this many bytes, matching the
# --buffer KB conversion.
RECORD_SIZE_ESTIMATE = 256
DEFAULT_FLUSH_RECORDS = 5000
DEFAULT_FLUSH_THRESHOLD_BYTES = DEFAULT_FLUSH_RECORDS * RECORD_SIZE_ESTIMATE
MIN_FLUSH_THRESHOLD_BYTES = RECORD_SIZE_ESTIMATE
MAX_FLUSH_THRESHOLD_BYTES = 1024 * 1024 * 1024
MAX_WORKERS = 512

DEFAULT_OUTPUT_FILE = "file_list.csv"


def default_worker_count() -> int:
    return min(os.cpu_count() or 1, MAX_WORKERS)


def buffer_kb_to_bytes(kb: int) -> int:
    """Convert a ``--buffer`` value in KB to a flush threshold in bytes.

    The value is first turned into a whole number of estimated records so the
    threshold stays a multiple of ``RECORD_SIZE_ESTIMATE``.
    """
    if kb <= 0:
        raise ConfigError(f"Buffer size must be a positive number of KB, got {kb}")
    records = kb * 1000 // RECORD_SIZE_ESTIMATE
    return max(records, 1) * RECORD_SIZE_ESTIMATE


def parse_filetypes(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return normalize_extensions(value.split(","))


def normalize_extensions(values: Any) -> tuple[str, ...]:
    result: list[str] = []
    for raw in values:
        ext = str(raw).strip().lstrip(".").lower()
        if ext and ext not in result:
            result.append(ext)
    return tuple(result)


class ScanConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    root: Path = Field(description="Directory whose subdirectories are scanned")
    prefix: str | None = Field(default=None, description="Top-level folder name prefix")
    prefix_mode: PrefixMode = Field(default="anchored")
    extensions: tuple[str, ...] = Field(default=(), description="Accepted file extensions")
    flush_threshold_bytes: int = Field(
        default=DEFAULT_FLUSH_THRESHOLD_BYTES,
        ge=MIN_FLUSH_THRESHOLD_BYTES,
        le=MAX_FLUSH_THRESHOLD_BYTES,
    )
    output_path: Path = Field(default=Path(DEFAULT_OUTPUT_FILE))
    workers: int = Field(default_factory=default_worker_count, ge=1, le=MAX_WORKERS)
    write_bom: bool = Field(default=False)
    follow_symlinks: bool = Field(default=False)

    @field_validator("root")
    @classmethod
    def validate_root(cls, value: Path) -> Path:
        path = Path(os.path.abspath(Path(value).expanduser()))
        if not path.is_dir():
            raise ValueError(f"root path is not a directory: {path}")
        return path

    @field_validator("prefix")
    @classmethod
    def validate_prefix(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return None
        return value

    @field_validator("extensions", mode="before")
    @classmethod
    def validate_extensions(cls, value: Any) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            return parse_filetypes(value)
        return normalize_extensions(value)

    @field_validator("output_path")
    @classmethod
    def validate_output_path(cls, value: Path) -> Path:
        return Path(value).expanduser()


def build_scan_config(**values: Any) -> ScanConfig:
    """Validate scan options, raising ``ConfigError`` with a readable message."""
    try:
        return ScanConfig.model_validate(values)
    except ValidationError as exc:
        problems = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"]) or "config"
            problems.append(f"{location}: {error['msg']}")
        raise ConfigError("Invalid scan configuration: " + "; ".join(problems)) from exc

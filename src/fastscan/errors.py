"""Error taxonomy for scan setup and traversal."""

from __future__ import annotations


class FastScanError(Exception):
    """Base class for every error raised by fastscan."""


class ConfigError(FastScanError):
    """Invalid or missing startup configuration."""


class OutputOpenError(FastScanError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot open output file {path}: {reason}")
        self.path = path
        self.reason = reason


class EnumerationError(FastScanError):
    """A directory could not be listed. Recovered by treating it as empty."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot list directory {path}: {reason}")
        self.path = path
        self.reason = reason


class EncodingError(FastScanError):
    """A path cannot be written in the output encoding. The file is skipped."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot encode path {path!r}: {reason}")
        self.path = path
        self.reason = reason


class OutputWriteError(FastScanError):
    """Writing scan results to the output file failed; the result is incomplete."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot write output file {path}: {reason}")
        self.path = path
        self.reason = reason

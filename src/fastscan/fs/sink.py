"""Shared output stream for scan results."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import BinaryIO

from fastscan.errors import EncodingError, OutputOpenError, OutputWriteError

HEADER = b"File Path\n"
UTF8_BOM = b"\xef\xbb\xbf"
RECORD_ENCODING = "utf-8"


def encode_record(path: str) -> bytes:
    """Encode one output line: UTF-8 path plus a trailing newline.

    Names that are not valid Unicode (surrogate-escaped bytes from the OS) and
    names containing NUL or a newline cannot be represented and raise
    ``EncodingError``.
    """
    if "\x00" in path or "\n" in path:
        raise EncodingError(path, "path contains NUL or a newline")
    try:
        encoded = path.encode(RECORD_ENCODING)
    except UnicodeEncodeError as exc:
        raise EncodingError(path, str(exc)) from exc
    return encoded + b"\n"


class OutputSink:
    """Append-only byte stream shared by all workers.

    Each ``append`` is written as one contiguous unit under the sink's own
    lock. Ordering between different callers is arrival order. Write and close
    failures raise ``OutputWriteError``.
    """

    def __init__(self, handle: BinaryIO, *, path: Path | None = None, write_bom: bool = False) -> None:
        self.path = path
        self._handle = handle
        self._lock = threading.Lock()
        self._closed = False
        self.bytes_written = 0
        self.flush_count = 0
        if write_bom:
            self._write(UTF8_BOM)
        self._write(HEADER)

    @classmethod
    def open(cls, path: Path, *, write_bom: bool = False) -> OutputSink:
        try:
            handle = path.open("wb")
        except OSError as exc:
            raise OutputOpenError(str(path), exc.strerror or str(exc)) from exc
        try:
            return cls(handle, path=path, write_bom=write_bom)
        except OutputWriteError as exc:
            handle.close()
            raise OutputOpenError(str(path), exc.reason) from exc

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def name(self) -> str:
        return str(self.path) if self.path is not None else "<stream>"

    def append(self, data: bytes) -> None:
        if not data:
            return
        with self._lock:
            if self._closed:
                raise ValueError("append to a closed output sink")
            self._write(data)
            self.flush_count += 1

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._handle.close()
            except OSError as exc:
                raise OutputWriteError(self.name, exc.strerror or str(exc)) from exc

    def _write(self, data: bytes) -> None:
        try:
            self._handle.write(data)
        except OSError as exc:
            raise OutputWriteError(self.name, exc.strerror or str(exc)) from exc
        self.bytes_written += len(data)

    def __enter__(self) -> OutputSink:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

"""Traversal worker: enumerate directories, feed back subdirectories, buffer records."""

from __future__ import annotations

import os

from fastscan.errors import EncodingError, EnumerationError, OutputWriteError
from fastscan.fs.engine import ScanEngine
from fastscan.fs.enumerator import is_pseudo_entry
from fastscan.fs.sink import encode_record
from fastscan.runtime_logging import get_runtime_logger


class LocalBuffer:
    """Per-worker record accumulator, never shared between threads."""

    def __init__(self, engine: ScanEngine) -> None:
        self._engine = engine
        self._threshold = engine.flush_threshold_bytes
        self._data = bytearray()
        self.flushes = 0

    def add(self, record: bytes) -> None:
        self._data += record
        if len(self._data) >= self._threshold:
            self.flush()

    def flush(self) -> None:
        if not self._data:
            return
        # Cleared first: records from a failed write are dropped, not retried.
        data = bytes(self._data)
        self._data.clear()
        self.flushes += 1
        self._engine.append_output(data)


class TraversalWorker:
    def __init__(self, engine: ScanEngine, *, name: str = "worker") -> None:
        self.engine = engine
        self.name = name
        self.buffer = LocalBuffer(engine)
        self.directories_processed = 0
        self._logger = get_runtime_logger()

    def run(self) -> None:
        self._logger.debug("scan.worker.started", worker=self.name)
        try:
            while True:
                task = self.engine.take_or_wait()
                if task is None:
                    break
                try:
                    self.process_directory(task)
                except OutputWriteError as exc:
                    self._logger.error("scan.output.failed", worker=self.name, path=task, error=str(exc))
                except Exception as exc:
                    # A worker that dies leaves queued tasks without a consumer.
                    self.engine.stats.add_directory(failed=True)
                    self._logger.error(
                        "scan.worker.failed",
                        worker=self.name,
                        path=task,
                        error=repr(exc),
                    )
                finally:
                    self.engine.mark_done()
        finally:
            try:
                self.buffer.flush()
            except OutputWriteError as exc:
                self._logger.error("scan.output.failed", worker=self.name, error=str(exc))
            self._logger.debug(
                "scan.worker.finished",
                worker=self.name,
                directories=self.directories_processed,
                flushes=self.buffer.flushes,
            )

    def process_directory(self, path: str) -> None:
        """Enumerate ``path``; the caller marks the task done afterwards."""
        engine = self.engine
        self.directories_processed += 1
        try:
            entries = engine.enumerator.list_directory(path)
        except EnumerationError as exc:
            engine.stats.add_directory(failed=True)
            self._logger.debug("scan.enumerate.failed", path=path, reason=exc.reason)
            return

        path_filter = engine.path_filter
        found = 0
        for entry in entries:
            if is_pseudo_entry(entry.name):
                continue
            full_path = os.path.join(path, entry.name)
            if entry.is_directory:
                if path_filter.include_descendant(full_path):
                    engine.push(full_path)
                continue
            if not path_filter.include_file(entry.name):
                continue
            try:
                record = encode_record(full_path)
            except EncodingError as exc:
                engine.stats.add_encoding_skip()
                self._logger.debug("scan.record.unencodable", path=repr(full_path), reason=exc.reason)
                continue
            self.buffer.add(record)
            found += 1

        if found:
            engine.stats.add_files(found)
        engine.stats.add_directory()

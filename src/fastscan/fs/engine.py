"""Shared scan state handed to every traversal worker."""

from __future__ import annotations

import threading

from fastscan.errors import OutputWriteError
from fastscan.fs.enumerator import Enumerator
from fastscan.fs.filtering import PathFilter
from fastscan.fs.sink import OutputSink
from fastscan.fs.work_queue import WorkQueue
from fastscan.stats import ScanStatistics


class ScanEngine:
    """Owns the work queue, output sink and counters for one scan.

    Workers only reach shared state through this object; all synchronization
    lives in ``WorkQueue`` and ``OutputSink``. The first failed output write is
    kept in ``write_error`` for the coordinator to raise after the pool joins.
    """

    def __init__(
        self,
        *,
        sink: OutputSink,
        enumerator: Enumerator,
        path_filter: PathFilter,
        flush_threshold_bytes: int,
        stats: ScanStatistics | None = None,
    ) -> None:
        self.sink = sink
        self.enumerator = enumerator
        self.path_filter = path_filter
        self.flush_threshold_bytes = flush_threshold_bytes
        self.stats = stats or ScanStatistics()
        self.write_error: OutputWriteError | None = None
        self._queue = WorkQueue()
        self._error_lock = threading.Lock()

    def push(self, task: str) -> None:
        self._queue.push(task)

    def take_or_wait(self) -> str | None:
        return self._queue.take_or_wait()

    def mark_done(self) -> None:
        self._queue.mark_done()

    def is_quiescent(self) -> bool:
        return self._queue.is_quiescent()

    def wait_for_quiescence(self, timeout: float | None = None) -> bool:
        return self._queue.wait_for_quiescence(timeout)

    def shutdown(self) -> None:
        self._queue.shutdown()

    def append_output(self, data: bytes) -> None:
        try:
            self.sink.append(data)
        except OutputWriteError as exc:
            with self._error_lock:
                if self.write_error is None:
                    self.write_error = exc
            raise

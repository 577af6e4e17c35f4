"""Self-expanding directory queue with quiescence detection."""

from __future__ import annotations

import threading
from collections import deque


class WorkQueue:
    """FIFO of directories still to enumerate plus an in-flight counter.

    ``active_count`` covers tasks that are pending and tasks a worker is still
    enumerating. It is incremented once per ``push`` and decremented once per
    ``mark_done``, which workers call only after pushing every subdirectory
    they discovered. It therefore reaches zero only when the whole tree has
    been enumerated, and the call that brings it to zero shuts the queue down.

    Workers and the coordinator wait on separate conditions over one lock so a
    ``push`` notification can never be consumed by the coordinator.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._task_ready = threading.Condition(self._lock)
        self._drained = threading.Condition(self._lock)
        self._pending: deque[str] = deque()
        self._active = 0
        self._shutdown = False

    @property
    def active_count(self) -> int:
        with self._lock:
            return self._active

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def is_shutdown(self) -> bool:
        with self._lock:
            return self._shutdown

    def push(self, task: str) -> None:
        with self._lock:
            if self._shutdown:
                raise RuntimeError(f"cannot queue {task!r}: work queue is shut down")
            self._pending.append(task)
            self._active += 1
            self._task_ready.notify()

    def take_or_wait(self) -> str | None:
        """Block until a task is available; ``None`` means shut down and empty."""
        with self._lock:
            while not self._pending and not self._shutdown:
                self._task_ready.wait()
            if self._pending:
                return self._pending.popleft()
            return None

    def mark_done(self) -> None:
        with self._lock:
            if self._active <= 0:
                raise RuntimeError("mark_done called with no task in flight")
            self._active -= 1
            if self._active == 0 and not self._pending:
                self._shutdown_locked()

    def is_quiescent(self) -> bool:
        with self._lock:
            return self._active == 0 and not self._pending

    def wait_for_quiescence(self, timeout: float | None = None) -> bool:
        with self._lock:
            return self._drained.wait_for(
                lambda: self._active == 0 and not self._pending,
                timeout=timeout,
            )

    def shutdown(self) -> None:
        with self._lock:
            self._shutdown_locked()

    def _shutdown_locked(self) -> None:
        self._shutdown = True
        self._task_ready.notify_all()
        self._drained.notify_all()

"""Counters and timing for a scan run."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field


@dataclass(slots=True)
class ScanStatistics:
    files_found: int = 0
    directories_scanned: int = 0
    directories_failed: int = 0
    files_skipped_encoding: int = 0
    seeded_directories: int = 0
    output_flushes: int = 0
    started_at: float | None = None
    finished_at: float | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def start(self) -> None:
        self.started_at = time.monotonic()

    def finish(self) -> None:
        self.finished_at = time.monotonic()

    def add_files(self, count: int = 1) -> None:
        with self._lock:
            self.files_found += count

    def add_directory(self, *, failed: bool = False) -> None:
        with self._lock:
            self.directories_scanned += 1
            if failed:
                self.directories_failed += 1

    def add_encoding_skip(self) -> None:
        with self._lock:
            self.files_skipped_encoding += 1

    @property
    def elapsed_s(self) -> float:
        if self.started_at is None:
            return 0.0
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return max(end - self.started_at, 0.0)

    @property
    def files_per_second(self) -> float:
        elapsed = self.elapsed_s
        if elapsed <= 0:
            return 0.0
        return self.files_found / elapsed

    def report_lines(self) -> list[str]:
        lines = [
            f"File list export completed in {self.elapsed_s:.2f} seconds",
            f"Processed {self.files_found} files",
        ]
        if self.elapsed_s > 0:
            lines.append(f"Average processing speed: {self.files_per_second:.2f} files/second")
        if self.directories_failed:
            lines.append(f"Skipped {self.directories_failed} unreadable directories")
        if self.files_skipped_encoding:
            lines.append(f"Skipped {self.files_skipped_encoding} files with unencodable names")
        return lines

    def as_dict(self) -> dict[str, float | int]:
        return {
            "files_found": self.files_found,
            "directories_scanned": self.directories_scanned,
            "directories_failed": self.directories_failed,
            "files_skipped_encoding": self.files_skipped_encoding,
            "seeded_directories": self.seeded_directories,
            "output_flushes": self.output_flushes,
            "elapsed_s": round(self.elapsed_s, 6),
            "files_per_second": round(self.files_per_second, 3),
        }

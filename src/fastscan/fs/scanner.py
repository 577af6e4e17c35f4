"""Concurrent file enumeration: seed, run the worker pool, wait for quiescence."""

from __future__ import annotations

import os
import threading

from fastscan.config.models import ScanConfig
from fastscan.errors import EnumerationError
from fastscan.fs.engine import ScanEngine
from fastscan.fs.enumerator import Enumerator, ScandirEnumerator, is_pseudo_entry
from fastscan.fs.filtering import PathFilter
from fastscan.fs.sink import OutputSink
from fastscan.fs.worker import TraversalWorker
from fastscan.runtime_logging import get_runtime_logger
from fastscan.stats import ScanStatistics


class ScanCoordinator:
    def __init__(self, config: ScanConfig, *, enumerator: Enumerator | None = None) -> None:
        self.config = config
        self.enumerator = enumerator or ScandirEnumerator(follow_symlinks=config.follow_symlinks)
        self.path_filter = PathFilter(
            prefix=config.prefix,
            prefix_mode=config.prefix_mode,
            extensions=config.extensions,
        )
        self.stats = ScanStatistics()
        self._logger = get_runtime_logger()

    def run(self) -> ScanStatistics:
        """Scan the tree and write the result file.

        Raises ``OutputOpenError`` if the output cannot be created and
        ``OutputWriteError`` once the pool has stopped if any write to it failed.
        Directories and files that cannot be listed or encoded are skipped.
        """
        config = self.config
        self.stats.start()
        self._logger.info(
            "scan.started",
            root=str(config.root),
            prefix=config.prefix,
            prefix_mode=config.prefix_mode,
            extensions=list(config.extensions),
            workers=config.workers,
            flush_threshold_bytes=config.flush_threshold_bytes,
            output=str(config.output_path),
        )

        with OutputSink.open(config.output_path, write_bom=config.write_bom) as sink:
            engine = ScanEngine(
                sink=sink,
                enumerator=self.enumerator,
                path_filter=self.path_filter,
                flush_threshold_bytes=config.flush_threshold_bytes,
                stats=self.stats,
            )
            seeds = self.seed(engine)
            if seeds == 0:
                self._logger.info("scan.no_matching_directories", root=str(config.root))
            else:
                self._run_pool(engine)
            self.stats.output_flushes = sink.flush_count
            if engine.write_error is not None:
                self._logger.error("scan.aborted", reason=str(engine.write_error))
                raise engine.write_error

        self.stats.finish()
        self._logger.info("scan.completed", **self.stats.as_dict())
        return self.stats

    def seed(self, engine: ScanEngine) -> int:
        """Queue the root's immediate subdirectories that pass the prefix filter."""
        root = str(self.config.root)
        try:
            entries = self.enumerator.list_directory(root)
        except EnumerationError as exc:
            self._logger.warning("scan.root.unreadable", root=root, reason=exc.reason)
            return 0

        seeds = 0
        for entry in entries:
            if not entry.is_directory or is_pseudo_entry(entry.name):
                continue
            full_path = os.path.join(root, entry.name)
            if not self.path_filter.include_top_level(entry.name):
                continue
            engine.push(full_path)
            seeds += 1

        self.stats.seeded_directories = seeds
        self._logger.info("scan.seeded", root=root, directories=seeds)
        return seeds

    def _run_pool(self, engine: ScanEngine) -> None:
        workers = [
            TraversalWorker(engine, name=f"fastscan-worker-{index}")
            for index in range(self.config.workers)
        ]
        threads = [
            threading.Thread(target=worker.run, name=worker.name, daemon=True)
            for worker in workers
        ]
        for thread in threads:
            thread.start()
        try:
            engine.wait_for_quiescence()
        finally:
            engine.shutdown()
            for thread in threads:
                thread.join()


def scan_tree(config: ScanConfig, *, enumerator: Enumerator | None = None) -> ScanStatistics:
    return ScanCoordinator(config, enumerator=enumerator).run()

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from typing import Any
from unittest.mock import patch

from fastscan.config.models import ScanConfig, build_scan_config
from fastscan.errors import EnumerationError, OutputOpenError, OutputWriteError
from fastscan.fs.enumerator import DirEntry, ScandirEnumerator
from fastscan.fs.scanner import scan_tree
from fastscan.fs.sink import HEADER, UTF8_BOM
from fastscan.runtime_logging import configure_runtime_logging


def make_tree(root: Path, files: list[str], dirs: tuple[str, ...] | list[str] = ()) -> None:
    for rel in dirs:
        (root / rel).mkdir(parents=True, exist_ok=True)
    for rel in files:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("x", encoding="utf-8")


def read_output(path: Path) -> tuple[bytes, list[str]]:
    data = path.read_bytes()
    header_end = data.index(b"\n") + 1
    lines = data[header_end:].decode("utf-8").splitlines()
    return data[:header_end], lines


class FlakyEnumerator(ScandirEnumerator):
    """Fails to list any directory whose name is in ``unreadable``."""

    def __init__(self, unreadable: set[str], *, crash: set[str] | None = None) -> None:
        super().__init__()
        self.unreadable = unreadable
        self.crash = crash or set()

    def list_directory(self, path: str) -> list[DirEntry]:
        name = os.path.basename(path)
        if name in self.unreadable:
            raise EnumerationError(path, "Permission denied")
        if name in self.crash:
            raise RuntimeError(f"boom in {path}")
        return super().list_directory(path)


class FixedEnumerator:
    def __init__(self, listing: dict[str, list[DirEntry]]) -> None:
        self.listing = listing

    def list_directory(self, path: str) -> list[DirEntry]:
        try:
            return self.listing[path]
        except KeyError:
            raise EnumerationError(path, "No such directory") from None


class ScanTreeTests(unittest.TestCase):
    def setUp(self) -> None:
        configure_runtime_logging(level="off")
        self._tmp = tempfile.TemporaryDirectory()
        base = Path(self._tmp.name)
        self.root = base / "root"
        self.root.mkdir()
        self.output = base / "out" / "file_list.csv"
        self.output.parent.mkdir()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def config(self, **overrides: Any) -> ScanConfig:
        values: dict[str, Any] = {"root": self.root, "output_path": self.output, "workers": 4}
        values.update(overrides)
        return build_scan_config(**values)

    def expected(self, *rels: str) -> set[str]:
        root = os.path.abspath(self.root)
        return {os.path.join(root, *rel.split("/")) for rel in rels}

    def test_extension_filter_scenario(self) -> None:
        make_tree(self.root, ["A/file1.txt", "B/file2.doc"])

        stats = scan_tree(self.config(extensions=["txt"]))

        header, lines = read_output(self.output)
        self.assertEqual(header, HEADER)
        self.assertEqual(len(lines), 1)
        self.assertTrue(lines[0].endswith("file1.txt"))
        self.assertEqual(set(lines), self.expected("A/file1.txt"))
        self.assertEqual(stats.files_found, 1)

    def test_prefix_selects_top_level_subtree_only(self) -> None:
        make_tree(
            self.root,
            [
                "ProjectX/a.txt",
                "ProjectX/deep/er/still/b.bin",
                "ProjectX/Other/c.txt",
                "Other/d.txt",
                "Other/ProjectY/e.txt",
            ],
            dirs=["ProjectX/empty"],
        )

        stats = scan_tree(self.config(prefix="proj"))

        _, lines = read_output(self.output)
        self.assertEqual(
            set(lines),
            self.expected("ProjectX/a.txt", "ProjectX/deep/er/still/b.bin", "ProjectX/Other/c.txt"),
        )
        self.assertEqual(stats.seeded_directories, 1)

    def test_root_without_subdirectories_writes_header_only(self) -> None:
        make_tree(self.root, ["loose1.txt", "loose2.doc"])

        stats = scan_tree(self.config())

        self.assertEqual(self.output.read_bytes(), HEADER)
        self.assertEqual(stats.seeded_directories, 0)
        self.assertEqual(stats.files_found, 0)

    def test_files_directly_under_root_are_excluded(self) -> None:
        make_tree(self.root, ["top.txt", "sub/inner.txt"])

        scan_tree(self.config())

        _, lines = read_output(self.output)
        self.assertEqual(set(lines), self.expected("sub/inner.txt"))

    def test_result_set_independent_of_flush_threshold(self) -> None:
        files = [f"d{i}/sub{j}/f{k}.dat" for i in range(5) for j in range(4) for k in range(12)]
        make_tree(self.root, files)

        small = scan_tree(self.config(workers=1, flush_threshold_bytes=256))
        _, small_lines = read_output(self.output)
        large = scan_tree(self.config(workers=1, flush_threshold_bytes=1_000_000 * 256))
        _, large_lines = read_output(self.output)

        self.assertEqual(set(small_lines), set(large_lines))
        self.assertEqual(set(small_lines), self.expected(*files))
        self.assertEqual(len(small_lines), len(files))
        self.assertEqual(small.files_found, large.files_found)
        # A one-record threshold flushes every few records; a huge one only
        # drains once when the worker exits.
        self.assertGreater(small.output_flushes, 10)
        self.assertEqual(large.output_flushes, 1)

    def test_filter_excluding_everything_still_writes_header(self) -> None:
        make_tree(self.root, ["A/a.txt", "B/b.doc"])

        stats = scan_tree(self.config(extensions=["pdf"]))

        self.assertEqual(self.output.read_bytes(), HEADER)
        self.assertEqual(stats.files_found, 0)
        self.assertEqual(stats.seeded_directories, 2)

    def test_unreadable_directories_contribute_nothing(self) -> None:
        make_tree(
            self.root,
            ["A/ok.txt", "A/locked/hidden.txt", "A/locked/deeper/also.txt", "B/locked/x.txt", "B/y.txt"],
            dirs=["C"],
        )

        stats = scan_tree(self.config(), enumerator=FlakyEnumerator({"locked"}))

        _, lines = read_output(self.output)
        self.assertEqual(set(lines), self.expected("A/ok.txt", "B/y.txt"))
        self.assertEqual(stats.directories_failed, 2)
        self.assertEqual(stats.directories_scanned, 5)

    def test_unexpected_listing_error_does_not_stop_the_pool(self) -> None:
        make_tree(self.root, ["A/ok.txt", "A/bad/lost.txt", "B/fine.txt"])

        stats = scan_tree(self.config(workers=1), enumerator=FlakyEnumerator(set(), crash={"bad"}))

        _, lines = read_output(self.output)
        self.assertEqual(set(lines), self.expected("A/ok.txt", "B/fine.txt"))
        self.assertEqual(stats.directories_failed, 1)

    def test_unlistable_root_is_not_fatal(self) -> None:
        stats = scan_tree(self.config(), enumerator=FixedEnumerator({}))

        self.assertEqual(self.output.read_bytes(), HEADER)
        self.assertEqual(stats.seeded_directories, 0)

    def test_unencodable_names_are_skipped(self) -> None:
        root = os.path.abspath(self.root)
        sub = os.path.join(root, "sub")
        enumerator = FixedEnumerator(
            {
                root: [DirEntry("sub", True), DirEntry("root-file.txt", False)],
                sub: [
                    DirEntry(".", True),
                    DirEntry("..", True),
                    DirEntry("good.txt", False),
                    DirEntry("bad\udcff.txt", False),
                ],
            }
        )

        stats = scan_tree(self.config(), enumerator=enumerator)

        _, lines = read_output(self.output)
        self.assertEqual(lines, [os.path.join(sub, "good.txt")])
        self.assertEqual(stats.files_skipped_encoding, 1)
        self.assertEqual(stats.files_found, 1)

    def test_substring_mode_seeds_by_name_then_filters_descendant_paths(self) -> None:
        make_tree(
            self.root,
            [
                "ProjectX/a.txt",
                "ProjectX/proj-notes/b.txt",
                "ProjectX/src/c.txt",
                "MyProj/d.txt",
                "Other/e.txt",
            ],
        )

        stats = scan_tree(self.config(prefix="proj", prefix_mode="substring"))

        _, lines = read_output(self.output)
        self.assertEqual(set(lines), self.expected("ProjectX/a.txt", "ProjectX/proj-notes/b.txt"))
        self.assertEqual(stats.seeded_directories, 1)

    def test_substring_mode_with_prefix_in_root_path(self) -> None:
        root = Path(self._tmp.name) / "projects"
        make_tree(root, ["ProjectX/a.txt", "ProjectX/src/c.txt", "Other/b.txt"])

        stats = scan_tree(self.config(root=root, prefix="proj", prefix_mode="substring"))

        _, lines = read_output(self.output)
        base = os.path.abspath(root)
        self.assertEqual(
            set(lines),
            {os.path.join(base, "ProjectX", "a.txt"), os.path.join(base, "ProjectX", "src", "c.txt")},
        )
        self.assertEqual(stats.seeded_directories, 1)

    def test_bom_is_written_before_header(self) -> None:
        make_tree(self.root, ["A/a.txt"])

        scan_tree(self.config(write_bom=True))

        data = self.output.read_bytes()
        self.assertTrue(data.startswith(UTF8_BOM + HEADER))

    def test_single_worker_and_many_workers_agree(self) -> None:
        files = [f"top{i}/n{j}/leaf{k}.txt" for i in range(3) for j in range(3) for k in range(5)]
        make_tree(self.root, files, dirs=["empty/one/two"])

        scan_tree(self.config(workers=1))
        _, single = read_output(self.output)
        scan_tree(self.config(workers=16))
        _, many = read_output(self.output)

        self.assertEqual(set(single), set(many))
        self.assertEqual(set(single), self.expected(*files))

    def test_output_open_failure(self) -> None:
        make_tree(self.root, ["A/a.txt"])

        with self.assertRaises(OutputOpenError):
            scan_tree(self.config(output_path=self.output.parent / "missing" / "out.csv"))

    def test_output_write_failure_is_raised_after_the_pool_stops(self) -> None:
        make_tree(self.root, ["A/a.txt", "A/sub/b.txt", "B/c.txt"])
        failure = OutputWriteError(str(self.output), "No space left on device")

        with patch("fastscan.fs.sink.OutputSink.append", side_effect=failure) as append, patch(
            "threading.excepthook"
        ) as excepthook:
            with self.assertRaises(OutputWriteError) as ctx:
                scan_tree(self.config(flush_threshold_bytes=256))

        self.assertIs(ctx.exception, failure)
        self.assertTrue(append.called)
        excepthook.assert_not_called()
        self.assertEqual(self.output.read_bytes(), HEADER)

    def test_statistics_report(self) -> None:
        make_tree(self.root, ["A/a.txt", "A/b.txt"])

        stats = scan_tree(self.config())

        self.assertEqual(stats.files_found, 2)
        self.assertIsNotNone(stats.finished_at)
        self.assertGreaterEqual(stats.files_per_second, 0.0)
        report = stats.report_lines()
        self.assertTrue(report[0].startswith("File list export completed in"))
        self.assertEqual(report[1], "Processed 2 files")


@unittest.skipIf(not hasattr(os, "symlink"), "symlinks unavailable")
class SymlinkTests(unittest.TestCase):
    def setUp(self) -> None:
        configure_runtime_logging(level="off")
        self._tmp = tempfile.TemporaryDirectory()
        base = Path(self._tmp.name)
        self.root = base / "root"
        self.outside = base / "outside"
        self.output = base / "out.csv"
        make_tree(self.root, ["A/a.txt"])
        make_tree(self.outside, ["linked.txt"])
        try:
            os.symlink(self.outside, self.root / "A" / "link", target_is_directory=True)
        except OSError as exc:
            self.skipTest(f"cannot create symlink: {exc}")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _scan(self, follow: bool) -> set[str]:
        config = build_scan_config(
            root=self.root, output_path=self.output, workers=2, follow_symlinks=follow
        )
        scan_tree(config)
        return set(read_output(self.output)[1])

    def test_directory_symlinks_skipped_by_default(self) -> None:
        lines = self._scan(follow=False)
        self.assertEqual(lines, {os.path.join(os.path.abspath(self.root), "A", "a.txt")})

    def test_directory_symlinks_followed_on_request(self) -> None:
        lines = self._scan(follow=True)
        self.assertIn(os.path.join(os.path.abspath(self.root), "A", "link", "linked.txt"), lines)


if __name__ == "__main__":
    unittest.main()

"""Directory listing primitive consumed by the traversal workers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Protocol

from fastscan.errors import EnumerationError

SELF_ENTRY = "."
PARENT_ENTRY = ".."


@dataclass(frozen=True, slots=True)
class DirEntry:
    name: str
    is_directory: bool


class Enumerator(Protocol):
    def list_directory(self, path: str) -> list[DirEntry]:
        """Return the entries of ``path`` or raise ``EnumerationError``."""
        ...


def is_pseudo_entry(name: str) -> bool:
    return name in (SELF_ENTRY, PARENT_ENTRY)


class ScandirEnumerator:
    """``os.scandir`` backed listing.

    Symlinks to directories are skipped unless ``follow_symlinks`` is set;
    every other non-directory entry is reported as a file.
    """

    def __init__(self, *, follow_symlinks: bool = False) -> None:
        self.follow_symlinks = follow_symlinks

    def list_directory(self, path: str) -> list[DirEntry]:
        entries: list[DirEntry] = []
        try:
            with os.scandir(path) as it:
                for entry in it:
                    classified = self._classify(entry)
                    if classified is not None:
                        entries.append(classified)
        except OSError as exc:
            raise EnumerationError(path, exc.strerror or str(exc)) from exc
        return entries

    def _classify(self, entry: os.DirEntry[str]) -> DirEntry | None:
        try:
            if entry.is_dir(follow_symlinks=self.follow_symlinks):
                return DirEntry(name=entry.name, is_directory=True)
            if not self.follow_symlinks and entry.is_symlink() and entry.is_dir():
                return None
        except OSError:
            # Entry vanished or its target is unreadable; report it as a file.
            pass
        return DirEntry(name=entry.name, is_directory=False)

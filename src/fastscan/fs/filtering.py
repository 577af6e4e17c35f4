"""Prefix and extension filtering for scanned paths."""

from __future__ import annotations

from collections.abc import Iterable

from fastscan.config.models import PrefixMode


def file_extension(name: str) -> str | None:
    """Return the text after the final ``.`` in ``name``, or ``None``."""
    index = name.rfind(".")
    if index < 0:
        return None
    return name[index + 1 :]


class PathFilter:
    """Prefix and extension predicates.

    Top-level folders are always selected by a case-insensitive starts-with
    test on their name. In ``substring`` mode every discovered subdirectory
    must also contain the prefix somewhere in its full path; that test is
    case-sensitive.
    """

    def __init__(
        self,
        *,
        prefix: str | None = None,
        prefix_mode: PrefixMode = "anchored",
        extensions: Iterable[str] = (),
    ) -> None:
        self.prefix = prefix or None
        self.prefix_mode = prefix_mode
        self._prefix_folded = self.prefix.casefold() if self.prefix else None
        self.extensions = frozenset(ext.casefold() for ext in extensions)

    def include_top_level(self, name: str) -> bool:
        """Decide whether a directory directly under the root seeds the scan."""
        if self._prefix_folded is None:
            return True
        return name.casefold().startswith(self._prefix_folded)

    def include_descendant(self, full_path: str) -> bool:
        """Decide whether a discovered subdirectory is queued."""
        if self.prefix is None or self.prefix_mode != "substring":
            return True
        return self.prefix in full_path

    def include_file(self, name: str) -> bool:
        if not self.extensions:
            return True
        ext = file_extension(name)
        if ext is None:
            return False
        return ext.casefold() in self.extensions

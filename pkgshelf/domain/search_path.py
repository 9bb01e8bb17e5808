"""
Ordered, duplicate-free module search path.

The process-wide search path (e.g. `sys.path`) is modeled as a value so the
ordering rules can be exercised without touching interpreter state. Callers
copy the result into the real list with `SearchPath.apply`.
"""
from __future__ import annotations

import os
import sys
from typing import Iterable, List, Mapping, MutableSequence, Optional, Set


def insert_paths(
    paths: Iterable[str],
    existing: List[str],
    insertion_index: Optional[int],
) -> List[str]:
    """
    Return a copy of `existing` with every new entry of `paths` inserted.

    New entries keep their relative order and go to `insertion_index` (after
    the entries seeded by the invoking environment, so user overrides win) or
    to the front when the index is None.
    """
    seen = set(existing)
    new: List[str] = []
    for p in paths:
        if p in seen:
            continue
        seen.add(p)
        new.append(p)

    result = list(existing)
    if insertion_index is None:
        result[0:0] = new
    else:
        index = max(0, min(insertion_index, len(result)))
        result[index:index] = new
    return result


class SearchPath:
    """
    Module search path plus the bookkeeping pkgshelf needs to manage it.

    `insertion_index` counts the externally seeded entries at the front;
    package directories are inserted right after them. `contributed` holds the
    entries added by activation so a later activation can remove them again.
    """

    def __init__(
        self,
        entries: Optional[Iterable[str]] = None,
        insertion_index: Optional[int] = None,
        contributed: Optional[Iterable[str]] = None,
    ):
        self.entries: List[str] = []
        for e in entries or []:
            if e not in self.entries:
                self.entries.append(e)
        self.insertion_index = insertion_index
        self.contributed: Set[str] = set(contributed or [])

    @classmethod
    def from_process(
        cls,
        path: Optional[Iterable[str]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "SearchPath":
        """
        Snapshot the interpreter's search path.

        The script directory and the PYTHONPATH entries that follow it count
        as seeded, so package directories are inserted after them.
        """
        search_path = cls(sys.path if path is None else path)
        env = os.environ if environ is None else environ
        seeded = [p for p in env.get("PYTHONPATH", "").split(os.pathsep) if p]
        entries = search_path.entries
        if entries:
            index = 1
            while index < len(entries) and entries[index] in seeded:
                index += 1
            search_path.insertion_index = index
        return search_path

    def __contains__(self, entry: str) -> bool:
        return entry in self.entries

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"SearchPath({self.entries!r}, insertion_index={self.insertion_index!r})"

    def copy(self) -> "SearchPath":
        return SearchPath(self.entries, self.insertion_index, self.contributed)

    def reset(self) -> "SearchPath":
        """Return the baseline: this path without any activation entries."""
        baseline = [e for e in self.entries if e not in self.contributed]
        return SearchPath(baseline, self.insertion_index)

    def insert(self, paths: Iterable[str]) -> List[str]:
        """
        Insert the given paths, returning the entries that were actually added.

        Consecutive calls keep the order of the calls: the insertion point
        advances past the entries added by earlier calls.
        """
        added: List[str] = []
        for p in paths:
            if p not in self.entries and p not in added:
                added.append(p)
        self.entries = insert_paths(added, self.entries, self._cursor())
        self.contributed.update(added)
        return added

    def apply(self, target: MutableSequence[str]) -> None:
        """Replace the contents of `target` (e.g. sys.path) with this path."""
        target[:] = self.entries

    def _cursor(self) -> Optional[int]:
        # Position right after the last contributed entry that follows the
        # seeded entries, so specs stay in processing order.
        if self.insertion_index is None:
            start = 0
        else:
            start = self.insertion_index
        position = start
        for i in range(start, len(self.entries)):
            if self.entries[i] in self.contributed:
                position = i + 1
            else:
                break
        if self.insertion_index is None and position == 0:
            return None
        return position

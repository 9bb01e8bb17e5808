"""
Activation of resolved packages.

Activation puts the load directories of the selected specs on the module
search path, refusing packages that are not installed or that clash with a
version already active in the process. It also exposes the packages' manual
pages through MANPATH and writes the lock snapshot.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, MutableMapping, Optional

from pkgshelf.core.errors import PackageNotInstalled, VersionConflict
from pkgshelf.data.lockfile import LockfileWriter
from pkgshelf.data.resolution import Resolution
from pkgshelf.domain.models import PackageSpec
from pkgshelf.domain.search_path import SearchPath

logger = logging.getLogger(__name__)

MANPATH_ENV_VAR = "MANPATH"
ORIG_MANPATH_ENV_VAR = "PKGSHELF_ORIG_MANPATH"


class ActivationRegistry:
    """
    Packages active in the current process, keyed by name.

    Entries are never removed: once a version of a package is active, the
    process cannot switch to another one.
    """

    def __init__(self):
        self._specs: Dict[str, PackageSpec] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._specs

    def get(self, name: str) -> Optional[PackageSpec]:
        return self._specs.get(name)

    def mark_loaded(self, spec: PackageSpec) -> None:
        self._specs[spec.name] = spec

    def names(self) -> List[str]:
        return sorted(self._specs)


def manual_dirs(entries: Iterable[str]) -> List[str]:
    """
    Manual page directories next to the given `lib` directories.

    `<pkg>/lib` maps to `<pkg>/man`, which is kept only when it has at least
    one `man?` section directory.
    """
    manuals: List[str] = []
    for entry in entries:
        path = Path(entry)
        if path.name != "lib":
            continue
        man_dir = path.parent / "man"
        if any(section.is_dir() for section in man_dir.glob("man?")):
            manuals.append(str(man_dir))
    return manuals


def setup_manpath(entries: Iterable[str], environ: MutableMapping[str, str]) -> Optional[str]:
    """
    Prepend the packages' manual directories to MANPATH.

    The original value is stored under PKGSHELF_ORIG_MANPATH first so a parent
    process can restore it. Returns the new MANPATH, or None if unchanged.
    """
    original = environ.get(MANPATH_ENV_VAR)
    if original is None:
        environ.pop(ORIG_MANPATH_ENV_VAR, None)
    else:
        environ[ORIG_MANPATH_ENV_VAR] = original

    manuals = manual_dirs(entries)
    if not manuals:
        return None

    merged: List[str] = []
    for d in manuals + (original or "").split(os.pathsep):
        if d and d not in merged:
            merged.append(d)
    environ[MANPATH_ENV_VAR] = os.pathsep.join(merged)
    return environ[MANPATH_ENV_VAR]


class Activator:
    """
    Activates resolved specs into a search path.

    The search path is held as a value (`self.search_path`); callers copy it
    into `sys.path` with `SearchPath.apply` once activation succeeded.
    """

    def __init__(
        self,
        resolution: Resolution,
        search_path: Optional[SearchPath] = None,
        registry: Optional[ActivationRegistry] = None,
        lock_writer: Optional[LockfileWriter] = None,
        environ: Optional[MutableMapping[str, str]] = None,
        without: Optional[Iterable[str]] = None,
    ):
        self.resolution = resolution
        self.without = list(without) if without is not None else None
        self.search_path = search_path if search_path is not None else SearchPath.from_process()
        self.registry = registry if registry is not None else ActivationRegistry()
        self.lock_writer = lock_writer
        self.environ = environ if environ is not None else os.environ

    def activate(self, groups: Optional[Iterable[str]] = None) -> "Activator":
        groups = list(groups or [])

        # Has to happen first
        search_path = self.search_path.reset()

        specs = self.resolution.specs_for(groups) if groups else self.resolution.requested_specs(self.without)

        staged: Dict[str, PackageSpec] = {}
        for spec in specs:
            if not spec.loaded_from:
                raise PackageNotInstalled(spec.name, spec.version)

            active = staged.get(spec.name) or self.registry.get(spec.name)
            if active is not None and active.version != spec.version:
                raise VersionConflict(spec.name, active.version, spec.version)

            staged[spec.name] = spec
            added = search_path.insert(spec.load_paths)
            logger.debug(f"Activated {spec} ({len(added)} new search path entries)")

        for spec in staged.values():
            self.registry.mark_loaded(spec)
        self.search_path = search_path

        setup_manpath(self.search_path.entries, self.environ)

        if self.lock_writer is not None:
            self.lock_writer.persist(self.resolution, preserve_tool_version_tag=True)

        return self

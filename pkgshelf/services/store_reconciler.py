"""
Removal of installed artifacts the current resolution no longer references.

The installed state is re-read from the install root on every pass and
compared with what the resolved specs point at; anything left over is stale.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Set, Union

from pkgshelf.data.resolution import Resolution
from pkgshelf.services.sources import GitSource
from pkgshelf.storage.fs_artifact_store import FilesystemArtifactStore

logger = logging.getLogger(__name__)

# Checkout root of a package nested inside a git repository checkout.
NESTED_CHECKOUT_RE = re.compile(r"(.+pkgshelf/packages/.+-[a-f0-9]{7,12})")
ALT_EXECUTABLE_SUFFIXES = (".bat", ".exe")


def compute_stale(
    installed: Iterable[Union[str, Path]],
    referenced: Iterable[Union[str, Path]],
    exempt: Iterable[Union[str, Path]] = (),
) -> Set[str]:
    """Installed entries that are neither referenced nor exempt."""
    keep = {str(p) for p in referenced} | {str(p) for p in exempt}
    return {str(p) for p in installed} - keep


def report_line(directory: Union[str, Path]) -> str:
    """`packages/rack-1.0.0` -> `rack (1.0.0)`"""
    name, _, version = Path(directory).name.rpartition("-")
    return f"{name} ({version})"


class StoreReconciler:
    def __init__(self, resolution: Resolution, store: FilesystemArtifactStore):
        self.resolution = resolution
        self.store = store

    def installed(self) -> Dict[str, List[Path]]:
        return {
            "executables": self.store.executables(),
            "checkouts": self.store.vcs_checkout_dirs(),
            "git_caches": self.store.vcs_archive_cache_dirs(),
            "packages": self.store.package_dirs(),
            "archives": self.store.archive_files(),
            "metadata": self.store.metadata_files(),
        }

    def referenced(self) -> Dict[str, Set[str]]:
        refs: Dict[str, Set[str]] = {
            "executables": set(),
            "checkouts": set(),
            "git_caches": set(),
            "packages": set(),
            "archives": set(),
            "metadata": set(),
        }
        for spec in self.resolution.specs:
            if spec.full_path:
                full_path = str(Path(spec.full_path))
                refs["packages"].add(full_path)
                # Packages can be nested inside a checkout, like several packages in one repository
                md = NESTED_CHECKOUT_RE.match(Path(full_path).as_posix())
                if md:
                    refs["checkouts"].add(str(Path(md.group(1))))
            for executable in spec.executables:
                e = self.store.bin_dir / executable
                refs["executables"].add(str(e))
                for suffix in ALT_EXECUTABLE_SUFFIXES:
                    refs["executables"].add(f"{e}{suffix}")
            if spec.cache_file:
                refs["archives"].add(str(Path(spec.cache_file)))
            if spec.spec_file:
                refs["metadata"].add(str(Path(spec.spec_file)))
            if isinstance(spec.source, GitSource):
                refs["checkouts"].add(str(spec.source.install_path))
                refs["git_caches"].add(str(spec.source.archive_cache_path))
        return refs

    def stale(self) -> Dict[str, List[str]]:
        installed = self.installed()
        referenced = self.referenced()
        stale: Dict[str, List[str]] = {}
        for category, entries in installed.items():
            exempt = [self.store.extensions_dir] if category == "checkouts" else []
            stale[category] = sorted(compute_stale(entries, referenced[category], exempt))
        return stale

    def clean(self, dry_run: bool = False) -> List[str]:
        """
        Remove stale artifacts from the install root.

        Package and checkout directories are reported as "name (version)" and
        only previewed on a dry run. Executables, archives, metadata files and
        git caches are removed silently, and left alone on a dry run.
        """
        stale = self.stale()

        output = [self._remove_dir(d, dry_run) for d in stale["packages"]]
        output.extend(self._remove_dir(d, dry_run) for d in stale["checkouts"])

        if not dry_run:
            for category in ("executables", "archives", "metadata"):
                for file in stale[category]:
                    self.store.remove_file(Path(file))
            for cache_dir in stale["git_caches"]:
                self.store.remove_tree(Path(cache_dir))

        return output

    def _remove_dir(self, directory: str, dry_run: bool) -> str:
        output = report_line(directory)
        if dry_run:
            logger.info(f"Would have removed {output}")
        else:
            logger.info(f"Removing {output}")
            self.store.remove_tree(Path(directory))
        return output

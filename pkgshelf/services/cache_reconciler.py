"""
Project archive cache (vendor/cache by default).

`cache` copies every resolved package into the cache directory; `prune`
removes whatever the current resolution no longer references. Registry
packages are cached as `<name>-<version>.archive` files, git and path packages
as directories stamped with a `.pkgshelfcache` marker.
"""
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pkgshelf import TOOL_NAME
from pkgshelf.core.filesystem import FilesystemGuard
from pkgshelf.data.resolution import Resolution
from pkgshelf.data.settings import find_project_spec_name
from pkgshelf.domain.models import PackageSpec, Settings
from pkgshelf.services.sources import ARCHIVE_SUFFIX, CACHE_MARKER, PathSource

logger = logging.getLogger(__name__)

VCS_METADATA_DIR = ".git"


def archive_name(spec: PackageSpec) -> str:
    return f"{spec.full_name}{ARCHIVE_SUFFIX}"


def stale_archives(archives: Iterable[Path], specs: Iterable[PackageSpec]) -> List[Path]:
    """
    Archives whose file name matches no resolved `<name>-<version>`.

    Git specs never keep an archive alive; they are cached as directories.
    """
    kept = {
        archive_name(s)
        for s in specs
        if not (s.source is not None and s.source.is_vcs)
    }
    return [a for a in archives if Path(a).name not in kept]


def stale_cache_dirs(markers: Iterable[Path], specs: Iterable[PackageSpec]) -> List[Path]:
    """Directories holding a cache marker that no resolved source caches into."""
    kept = set()
    for s in specs:
        if s.source is None:
            continue
        dirname = s.source.cache_directory_name(s)
        if dirname:
            kept.add(dirname)
    return [m.parent for m in markers if m.parent.name not in kept]


class CacheReconciler:
    def __init__(
        self,
        resolution: Resolution,
        project_root: Union[str, Path],
        settings: Optional[Settings] = None,
        guard: Optional[FilesystemGuard] = None,
    ):
        self.resolution = resolution
        self.project_root = Path(project_root)
        self.settings = settings or Settings()
        self.guard = guard or FilesystemGuard()

    @property
    def app_cache_path(self) -> Path:
        return self.project_root / self.settings.app_cache_path

    def cache(self, target_dir: Optional[Union[str, Path]] = None) -> None:
        """
        Copy every resolved package into the cache directory, then prune it
        unless pruning is disabled.
        """
        cache_path = Path(target_dir) if target_dir is not None else self.app_cache_path
        self._ensure_dir(cache_path)

        logger.info(f"Updating files in {cache_path}")

        # Do not cache the package defined by the project itself
        root_name = find_project_spec_name(self.project_root, self.settings.project_spec_glob)

        for spec in self.resolution.specs:
            if spec.name == TOOL_NAME:
                continue
            if root_name and isinstance(spec.source, PathSource) and spec.name == root_name:
                logger.debug(f"Not caching {spec.name}, it is defined by this project")
                continue
            if spec.source is None or not spec.source.supports_cache:
                continue
            spec.source.materialize_archive(spec, cache_path)

        self._strip_vcs_metadata(cache_path)

        if not self.settings.no_prune:
            self.prune(self.resolution.specs, cache_path)

    def prune(
        self,
        specs: Optional[Iterable[PackageSpec]] = None,
        cache_dir: Optional[Union[str, Path]] = None,
    ) -> List[str]:
        """
        Remove cached archives and directories the resolution no longer uses.

        Returns the base names of the removed entries.
        """
        specs = list(self.resolution.specs if specs is None else specs)
        cache_path = Path(cache_dir) if cache_dir is not None else self.app_cache_path
        self._ensure_dir(cache_path)

        removed = self._prune_archives(specs, cache_path)
        removed.extend(self._prune_vcs_and_path_dirs(specs, cache_path))
        return removed

    def _prune_archives(self, specs: List[PackageSpec], cache_path: Path) -> List[str]:
        stale = stale_archives(sorted(cache_path.glob(f"*{ARCHIVE_SUFFIX}")), specs)
        if not stale:
            return []

        logger.info(f"Removing outdated {ARCHIVE_SUFFIX} files from {cache_path}")
        removed = []
        for path in stale:
            logger.info(f"  * {path.name}")
            with self.guard.access(path.parent):
                if path.exists():
                    path.unlink()
            removed.append(path.name)
        return removed

    def _prune_vcs_and_path_dirs(self, specs: List[PackageSpec], cache_path: Path) -> List[str]:
        stale = stale_cache_dirs(sorted(cache_path.glob(f"*/{CACHE_MARKER}")), specs)
        if not stale:
            return []

        logger.info(f"Removing outdated git and path packages from {cache_path}")
        removed = []
        for path in stale:
            logger.info(f"  * {path.name}")
            with self.guard.access(path) as p:
                if p.exists():
                    shutil.rmtree(p)
            removed.append(path.name)
        return removed

    def _strip_vcs_metadata(self, cache_path: Path) -> None:
        # Git metadata changes with every fetch, so it cannot be part of the cache.
        for vcs_dir in sorted(cache_path.glob(f"*/{VCS_METADATA_DIR}")):
            with self.guard.access(vcs_dir) as d:
                if d.is_dir() and not d.is_symlink():
                    shutil.rmtree(d)
                else:
                    d.unlink()
                (d.parent / CACHE_MARKER).touch()

    def _ensure_dir(self, path: Path) -> None:
        if path.exists():
            return
        with self.guard.access(path) as p:
            p.mkdir(parents=True, exist_ok=True)

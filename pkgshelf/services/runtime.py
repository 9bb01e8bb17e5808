"""
Entry point used by callers (CLI, HTTP layer) for one project.

Runtime wires the activator, the selective loader and both reconcilers to a
single resolution; each operation is otherwise independent of the others.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, MutableMapping, Optional, Union

from pkgshelf.core.filesystem import FilesystemGuard
from pkgshelf.data.lockfile import LockfileWriter
from pkgshelf.data.resolution import Resolution
from pkgshelf.domain.models import Dependency, PackageSpec, Settings
from pkgshelf.domain.search_path import SearchPath
from pkgshelf.services.activator import ActivationRegistry, Activator
from pkgshelf.services.cache_reconciler import CacheReconciler
from pkgshelf.services.loader import ModuleLoader, SelectiveLoader
from pkgshelf.services.store_reconciler import StoreReconciler
from pkgshelf.storage.fs_artifact_store import FilesystemArtifactStore

logger = logging.getLogger(__name__)


class Runtime:
    def __init__(
        self,
        resolution: Resolution,
        project_root: Union[str, Path],
        settings: Optional[Settings] = None,
        store: Optional[FilesystemArtifactStore] = None,
        search_path: Optional[SearchPath] = None,
        registry: Optional[ActivationRegistry] = None,
        loader: Optional[ModuleLoader] = None,
        environ: Optional[MutableMapping[str, str]] = None,
        guard: Optional[FilesystemGuard] = None,
    ):
        self.project_root = Path(project_root)
        self.settings = settings or Settings()
        self.guard = guard or FilesystemGuard()
        self.resolution = resolution
        self.store = store or FilesystemArtifactStore(self.settings.install_root, self.guard)

        self.activator = Activator(
            resolution,
            search_path=search_path,
            registry=registry,
            lock_writer=LockfileWriter(self.project_root / self.settings.lockfile, guard=self.guard),
            environ=environ,
            without=self.settings.without or None,
        )
        self.selective_loader = SelectiveLoader(resolution, loader)
        self.cache_reconciler = CacheReconciler(resolution, self.project_root, self.settings, self.guard)
        self.store_reconciler = StoreReconciler(resolution, self.store)

    @property
    def specs(self) -> List[PackageSpec]:
        return self.resolution.specs

    @property
    def search_path(self) -> SearchPath:
        return self.activator.search_path

    def dependencies_for(self, groups: Optional[Iterable[str]] = None) -> List[Dependency]:
        return self.resolution.dependencies_for(groups or [])

    def activate(self, groups: Optional[Iterable[str]] = None) -> "Runtime":
        self.activator.activate(groups)
        return self

    def load_required(self, groups: Optional[Iterable[str]] = None) -> List[str]:
        return self.selective_loader.load_required(groups)

    def cache(self, target_dir: Optional[Union[str, Path]] = None) -> None:
        self.cache_reconciler.cache(target_dir)

    def prune(self, cache_dir: Optional[Union[str, Path]] = None) -> List[str]:
        return self.cache_reconciler.prune(self.resolution.specs, cache_dir)

    def clean(self, dry_run: bool = False) -> List[str]:
        return self.store_reconciler.clean(dry_run)

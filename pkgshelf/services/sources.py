"""
Package sources as seen by the cache and clean passes.

A source knows how to place a copy of one of its packages into a project cache
directory. Registry packages are cached as a single archive file; git and path
packages are cached as a directory stamped with a marker file.
"""
from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

from pkgshelf.core.errors import PackageNotInstalled
from pkgshelf.core.filesystem import FilesystemGuard
from pkgshelf.domain.models import PackageSpec

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".archive"
# Zero-byte file recording that a directory in the cache was put there by pkgshelf.
CACHE_MARKER = ".pkgshelfcache"


def repository_base_name(uri: str) -> str:
    """Last path segment of a repository URI without its ".git" suffix."""
    name = uri.rstrip("/").rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


class Source(ABC):
    """
    Abstract base class for package sources.
    """

    is_vcs = False
    supports_cache = True

    def __init__(self, guard: Optional[FilesystemGuard] = None):
        self.guard = guard or FilesystemGuard()

    @abstractmethod
    def materialize_archive(self, spec: PackageSpec, target_dir: Path) -> None:
        """Place the cached form of `spec` into `target_dir`."""
        pass

    def cache_directory_name(self, spec: PackageSpec) -> Optional[str]:
        """Name of the directory this source caches into, if it caches directories."""
        return None

    @abstractmethod
    def lock_entry(self) -> Dict[str, str]:
        """Description of this source written into the lock snapshot."""
        pass


class RegistrySource(Source):
    """Packages downloaded from a registry and kept as archives in the store."""

    def __init__(self, remote: str = "https://registry.pkgshelf.dev", guard: Optional[FilesystemGuard] = None):
        super().__init__(guard)
        self.remote = remote

    def __repr__(self) -> str:
        return f"RegistrySource({self.remote!r})"

    def lock_entry(self) -> Dict[str, str]:
        return {"type": "registry", "remote": self.remote}

    def materialize_archive(self, spec: PackageSpec, target_dir: Path) -> None:
        target = Path(target_dir) / f"{spec.full_name}{ARCHIVE_SUFFIX}"
        if target.exists():
            return
        if not spec.cache_file or not Path(spec.cache_file).is_file():
            raise PackageNotInstalled(spec.name, spec.version)

        logger.debug(f"Caching {spec.full_name} from {spec.cache_file}")
        with self.guard.access(target_dir) as d:
            shutil.copy2(spec.cache_file, d / target.name)


class GitSource(Source):
    """
    Packages checked out from a git repository.

    `install_path` is the checkout inside the store; `archive_cache_path` is the
    bare clone the checkout was made from.
    """

    is_vcs = True

    def __init__(
        self,
        uri: str,
        revision: str,
        install_path: Union[str, Path],
        archive_cache_path: Union[str, Path],
        guard: Optional[FilesystemGuard] = None,
    ):
        super().__init__(guard)
        self.uri = uri
        self.revision = revision
        self.install_path = Path(install_path)
        self.archive_cache_path = Path(archive_cache_path)

    def __repr__(self) -> str:
        return f"GitSource({self.uri!r}, {self.revision[:12]!r})"

    def lock_entry(self) -> Dict[str, str]:
        return {"type": "git", "uri": self.uri, "revision": self.revision}

    @property
    def base_name(self) -> str:
        return repository_base_name(self.uri)

    def cache_directory_name(self, spec: PackageSpec) -> Optional[str]:
        return f"{self.base_name}-{self.revision[:12]}"

    def materialize_archive(self, spec: PackageSpec, target_dir: Path) -> None:
        target = Path(target_dir) / self.cache_directory_name(spec)
        if target == self.install_path:
            return
        if not self.install_path.is_dir():
            raise PackageNotInstalled(spec.name, spec.version)

        logger.debug(f"Caching {self.uri} at {self.revision[:12]} into {target}")
        with self.guard.access(target) as t:
            if t.exists():
                shutil.rmtree(t)
            shutil.copytree(self.install_path, t, symlinks=True)
            (t / CACHE_MARKER).touch()


class PathSource(Source):
    """Packages living in a local directory, usually next to the project."""

    def __init__(self, path: Union[str, Path], guard: Optional[FilesystemGuard] = None):
        super().__init__(guard)
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"PathSource({str(self.path)!r})"

    def lock_entry(self) -> Dict[str, str]:
        return {"type": "path", "path": str(self.path)}

    def cache_directory_name(self, spec: PackageSpec) -> Optional[str]:
        return self.path.resolve().name

    def materialize_archive(self, spec: PackageSpec, target_dir: Path) -> None:
        target = Path(target_dir) / self.cache_directory_name(spec)
        if target.resolve() == self.path.resolve():
            return
        if not self.path.is_dir():
            raise PackageNotInstalled(spec.name, spec.version)

        logger.debug(f"Caching {self.path} into {target}")
        with self.guard.access(target) as t:
            if t.exists():
                shutil.rmtree(t)
            shutil.copytree(self.path, t, symlinks=True)
            (t / CACHE_MARKER).touch()

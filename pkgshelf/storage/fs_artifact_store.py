import hashlib
import logging
import shutil
from pathlib import Path
from typing import List, Optional, Union

from pkgshelf.core.filesystem import FilesystemGuard
from pkgshelf.domain.models import PackageSpec
from pkgshelf.services.sources import (
    ARCHIVE_SUFFIX,
    GitSource,
    RegistrySource,
    repository_base_name,
)
from pkgshelf.storage.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)

# Layout of the install root:
#   bin/<executable>
#   packages/<name>-<version>/
#   specifications/<name>-<version>.spec
#   cache/<name>-<version>.archive
#   pkgshelf/packages/<base>-<revision[:12]>/     git checkouts
#   pkgshelf/packages/extensions/                  reserved
#   cache/pkgshelf/git/<base>-<sha1(uri)>/         bare git clones
SPEC_SUFFIX = ".spec"
EXTENSIONS_DIR_NAME = "extensions"


class FilesystemArtifactStore(ArtifactStore):
    def __init__(self, root: Union[str, Path], guard: Optional[FilesystemGuard] = None):
        self._root = Path(root)
        self.guard = guard or FilesystemGuard()

    def __repr__(self) -> str:
        return f"FilesystemArtifactStore({str(self._root)!r})"

    @property
    def root(self) -> Path:
        return self._root

    @property
    def bin_dir(self) -> Path:
        return self._root / "bin"

    @property
    def packages_dir(self) -> Path:
        return self._root / "packages"

    @property
    def specifications_dir(self) -> Path:
        return self._root / "specifications"

    @property
    def archive_dir(self) -> Path:
        return self._root / "cache"

    @property
    def checkouts_dir(self) -> Path:
        return self._root / "pkgshelf" / "packages"

    @property
    def git_cache_dir(self) -> Path:
        return self.archive_dir / "pkgshelf" / "git"

    @property
    def extensions_dir(self) -> Path:
        return self.checkouts_dir / EXTENSIONS_DIR_NAME

    # -----------------------------------------------------------------------
    # Listings
    # -----------------------------------------------------------------------

    def executables(self) -> List[Path]:
        return self._list(self.bin_dir)

    def package_dirs(self) -> List[Path]:
        return self._list(self.packages_dir)

    def vcs_checkout_dirs(self) -> List[Path]:
        return self._list(self.checkouts_dir)

    def vcs_archive_cache_dirs(self) -> List[Path]:
        return self._list(self.git_cache_dir)

    def archive_files(self) -> List[Path]:
        return self._list(self.archive_dir, f"*{ARCHIVE_SUFFIX}")

    def metadata_files(self) -> List[Path]:
        return self._list(self.specifications_dir, f"*{SPEC_SUFFIX}")

    def _list(self, directory: Path, pattern: str = "*") -> List[Path]:
        if not directory.is_dir():
            return []
        return sorted(directory.glob(pattern))

    # -----------------------------------------------------------------------
    # Removal
    # -----------------------------------------------------------------------

    def remove_tree(self, path: Path) -> bool:
        with self.guard.access(path) as p:
            if not p.exists():
                return False
            if p.is_dir() and not p.is_symlink():
                shutil.rmtree(p)
            else:
                p.unlink()
        return True

    def remove_file(self, path: Path) -> bool:
        with self.guard.access(Path(path).parent):
            p = Path(path)
            if not p.exists() and not p.is_symlink():
                return False
            p.unlink()
        return True

    # -----------------------------------------------------------------------
    # Spec construction
    # -----------------------------------------------------------------------

    def checkout_dir_for(self, base_name: str, revision: str) -> Path:
        return self.checkouts_dir / f"{base_name}-{revision[:12]}"

    def git_cache_dir_for(self, uri: str) -> Path:
        base_name = repository_base_name(uri)
        digest = hashlib.sha1(uri.encode("utf-8")).hexdigest()
        return self.git_cache_dir / f"{base_name}-{digest}"

    def registry_spec(
        self,
        name: str,
        version: str,
        executables: Optional[List[str]] = None,
        dependencies: Optional[List[str]] = None,
        source: Optional[RegistrySource] = None,
        installed: bool = True,
    ) -> PackageSpec:
        """
        Build the spec of a registry package installed in this store.
        """
        full_name = f"{name}-{version}"
        full_path = self.packages_dir / full_name
        spec_file = self.specifications_dir / f"{full_name}{SPEC_SUFFIX}"
        return PackageSpec(
            name=name,
            version=version,
            source=source or RegistrySource(guard=self.guard),
            load_paths=[str(full_path / "lib")],
            executables=executables or [],
            cache_file=str(self.archive_dir / f"{full_name}{ARCHIVE_SUFFIX}"),
            spec_file=str(spec_file),
            full_path=str(full_path),
            loaded_from=str(spec_file) if installed else None,
            dependencies=dependencies or [],
        )

    def git_spec(
        self,
        name: str,
        version: str,
        uri: str,
        revision: str,
        subdir: Optional[str] = None,
        executables: Optional[List[str]] = None,
        dependencies: Optional[List[str]] = None,
        installed: bool = True,
    ) -> PackageSpec:
        """
        Build the spec of a package checked out from git into this store.

        `subdir` places the package below the checkout root, for repositories
        hosting several packages.
        """
        source = GitSource(
            uri,
            revision,
            install_path=self.checkout_dir_for(repository_base_name(uri), revision),
            archive_cache_path=self.git_cache_dir_for(uri),
            guard=self.guard,
        )
        full_path = source.install_path / subdir if subdir else source.install_path
        full_name = f"{name}-{version}"
        spec_file = self.specifications_dir / f"{full_name}{SPEC_SUFFIX}"
        return PackageSpec(
            name=name,
            version=version,
            source=source,
            load_paths=[str(full_path / "lib")],
            executables=executables or [],
            cache_file=str(self.archive_dir / f"{full_name}{ARCHIVE_SUFFIX}"),
            spec_file=str(spec_file),
            full_path=str(full_path),
            loaded_from=str(full_path / f"{name}{SPEC_SUFFIX}") if installed else None,
            dependencies=dependencies or [],
        )

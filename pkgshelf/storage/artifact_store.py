from abc import ABC, abstractmethod
from pathlib import Path
from typing import List


class ArtifactStore(ABC):
    """
    Abstract base class for the install root holding installed packages.

    Listing methods always re-read the underlying storage; nothing is cached
    between calls.
    """

    @property
    @abstractmethod
    def root(self) -> Path:
        """Install root directory."""
        pass

    @property
    @abstractmethod
    def bin_dir(self) -> Path:
        """Directory executables are installed into."""
        pass

    @property
    @abstractmethod
    def extensions_dir(self) -> Path:
        """Reserved directory under the checkouts directory that is never removed."""
        pass

    @abstractmethod
    def executables(self) -> List[Path]:
        """All entries of the bin directory."""
        pass

    @abstractmethod
    def package_dirs(self) -> List[Path]:
        """Unpacked registry package directories."""
        pass

    @abstractmethod
    def vcs_checkout_dirs(self) -> List[Path]:
        """Version-control checkout directories."""
        pass

    @abstractmethod
    def vcs_archive_cache_dirs(self) -> List[Path]:
        """Bare version-control clones the checkouts are made from."""
        pass

    @abstractmethod
    def archive_files(self) -> List[Path]:
        """Cached package archives."""
        pass

    @abstractmethod
    def metadata_files(self) -> List[Path]:
        """Installed package metadata files."""
        pass

    @abstractmethod
    def remove_tree(self, path: Path) -> bool:
        """
        Recursively delete a directory if it still exists.
        Returns False when there was nothing to delete.
        """
        pass

    @abstractmethod
    def remove_file(self, path: Path) -> bool:
        """
        Delete a single file if it still exists.
        Returns False when there was nothing to delete.
        """
        pass

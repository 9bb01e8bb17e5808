"""
Pydantic models for pkgshelf.

This module defines the data models shared by every component:
- Resolved package specifications and manifest dependencies
- The classified result of a failed module load
- Project-level settings

Specs and dependencies are produced by the resolver and are only read here.
"""

from __future__ import annotations

import os
import sys
from typing import Any, Iterable, List, Literal, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_GROUP = "default"


# ---------------------------------------------------------------------------
# Resolution Models
# ---------------------------------------------------------------------------


class PackageSpec(BaseModel):
    """
    A single resolved package, identified by (name, version, platform).

    Paths are absolute strings pointing into the install root. `loaded_from`
    is only set once the package has been installed.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    version: str
    platform: str = Field(
        default="any",
        description="Platform the package was built for ('any' for pure packages).",
    )
    source: Any = Field(
        default=None,
        exclude=True,
        description="Source object the package comes from (registry, git or path).",
    )
    load_paths: List[str] = Field(
        default_factory=list,
        description="Directories to add to the module search path, in order.",
    )
    executables: List[str] = Field(
        default_factory=list,
        description="Names of the scripts this package installs into the store's bin directory.",
    )
    cache_file: Optional[str] = Field(
        default=None,
        description="Path of the package archive inside the store's cache directory.",
    )
    spec_file: Optional[str] = Field(
        default=None,
        description="Path of the package metadata file inside the store.",
    )
    full_path: Optional[str] = Field(
        default=None,
        description="Directory the package is unpacked into.",
    )
    loaded_from: Optional[str] = Field(
        default=None,
        description="Metadata file the installed package was loaded from; unset when not installed.",
    )
    dependencies: List[str] = Field(
        default_factory=list,
        description="Names of the runtime dependencies of this package.",
    )

    @property
    def full_name(self) -> str:
        return f"{self.name}-{self.version}"

    def __str__(self) -> str:
        return f"{self.name} ({self.version})"


class Dependency(BaseModel):
    """
    A dependency declared in the project manifest.

    `autorequire` controls what `load_required` loads:
    * None  -> the dependency name (implicit, eligible for the fallback name)
    * True  -> alias for the dependency name
    * False -> nothing
    * list  -> exactly those module files, in order
    """

    name: str
    groups: List[str] = Field(default_factory=lambda: [DEFAULT_GROUP])
    autorequire: Union[None, bool, List[str]] = None
    platforms: List[str] = Field(
        default_factory=list,
        description="Platforms this dependency applies to. Empty list means all.",
    )

    @property
    def explicit_autorequire(self) -> bool:
        return self.autorequire is not None

    def requested_files(self) -> List[str]:
        if self.autorequire is None or self.autorequire is True:
            return [self.name]
        if self.autorequire is False:
            return []
        return list(self.autorequire)

    def in_groups(self, groups: Iterable[str]) -> bool:
        return bool(set(self.groups) & set(groups))

    def current_platform(self, platform_tags: Optional[Set[str]] = None) -> bool:
        if not self.platforms:
            return True
        tags = platform_tags if platform_tags is not None else current_platform_tags()
        return any(p in tags for p in self.platforms)


def current_platform_tags() -> Set[str]:
    """Tags describing the running interpreter, e.g. {'linux', 'posix'}."""
    return {sys.platform, os.name}


# ---------------------------------------------------------------------------
# Module Loading
# ---------------------------------------------------------------------------


class LoadErrorKind(BaseModel):
    """
    Classification of a failed module load.

    Either NotFound (with the name of the file that could not be found, which
    may differ from the file that was requested) or Other.
    """

    model_config = ConfigDict(frozen=True)

    tag: Literal["not_found", "other"]
    missing: Optional[str] = None

    @classmethod
    def not_found(cls, file: str) -> "LoadErrorKind":
        return cls(tag="not_found", missing=file)

    @classmethod
    def other(cls) -> "LoadErrorKind":
        return cls(tag="other")

    @property
    def is_not_found(self) -> bool:
        return self.tag == "not_found"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    """
    Project-level configuration.

    Persisted at: <PROJECT_ROOT>/.pkgshelf/config.json
    Environment variables override the file (see pkgshelf.data.settings).
    """

    install_root: str = Field(
        default_factory=lambda: os.path.join(os.path.expanduser("~"), ".pkgshelf", "store"),
        description="Directory holding installed packages, executables and archives.",
    )
    app_cache_path: str = Field(
        default="vendor/cache",
        description="Project cache directory for package archives, relative to the project root.",
    )
    lockfile: str = Field(
        default="pkgshelf.lock",
        description="Lock snapshot file name, relative to the project root.",
    )
    no_prune: bool = Field(
        default=False,
        description="If True, `cache` does not prune outdated entries afterwards.",
    )
    without: List[str] = Field(
        default_factory=list,
        description="Groups excluded from the default requested set.",
    )
    project_spec_glob: str = Field(
        default="*.pkgspec",
        description="Glob matching the project-local package definition file.",
    )

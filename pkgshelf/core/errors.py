"""
Exception hierarchy for pkgshelf.

Activation and loading errors are fatal for the whole call. Filesystem access
denial is surfaced from the guard in `pkgshelf.core.filesystem`.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from pkgshelf.domain.models import LoadErrorKind


class PkgshelfError(Exception):
    """Base class for all errors raised by pkgshelf."""


class PackageNotInstalled(PkgshelfError):
    def __init__(self, name: str, version: str):
        self.name = name
        self.version = version
        super().__init__(f"{name}-{version} is missing. Run `pkgshelf install` to get it.")


class VersionConflict(PkgshelfError):
    """
    Raised when a package is already active in the process at a version other
    than the one the resolution requires.
    """

    def __init__(self, name: str, active_version: str, required_version: str):
        self.name = name
        self.active_version = active_version
        self.required_version = required_version
        super().__init__(
            f"You have already activated {name} {active_version}, "
            f"but your manifest requires {name} {required_version}. "
            f"Prepending `pkgshelf exec` to your command may solve this."
        )


class ModuleLoadError(PkgshelfError):
    """
    Failure reported by a module loader, already classified.

    `kind.missing` is set for "module not found" failures and names the file
    the loader could not find; it is None for every other failure.
    """

    def __init__(self, file: str, kind: LoadErrorKind, cause: Optional[BaseException] = None):
        self.file = file
        self.kind = kind
        self.cause = cause
        if kind.missing is not None:
            message = f"cannot load such file -- {kind.missing}"
        else:
            message = f"error while loading {file}: {cause}"
        super().__init__(message)


class LoadFailure(PkgshelfError):
    def __init__(self, dependency: str, file: str, cause: BaseException):
        self.dependency = dependency
        self.file = file
        self.cause = cause
        super().__init__(
            f"There was an error while trying to load the package '{file}' "
            f"(required by {dependency}): {cause}"
        )


class FilesystemAccessDenied(PkgshelfError):
    def __init__(self, path: Union[str, Path], action: str):
        self.path = Path(path)
        self.action = action
        super().__init__(
            f"There was an error while trying to {action} `{self.path}`. "
            f"It is likely that you need to grant write permissions for that path."
        )

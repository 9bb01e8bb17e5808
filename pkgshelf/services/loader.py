"""
Group-based loading of the modules declared by manifest dependencies.

Module loaders report failures as ModuleLoadError carrying a LoadErrorKind;
all interpretation of loader error messages happens inside the loader, so
`SelectiveLoader` only decides on the classified kind.
"""
from __future__ import annotations

import importlib
import logging
import re
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional, Set

from pkgshelf.core.errors import LoadFailure, ModuleLoadError
from pkgshelf.data.resolution import Resolution
from pkgshelf.domain.models import DEFAULT_GROUP, Dependency, LoadErrorKind, current_platform_tags

logger = logging.getLogger(__name__)

# Known shapes of "module not found" messages; group 1 is the missing file.
NOT_FOUND_PATTERNS = [
    re.compile(r"^No module named '?([^']+)'?$", re.IGNORECASE),
    re.compile(r"^no such file to load -- (.+)$", re.IGNORECASE),
    re.compile(r"^cannot load such file -- (.+)$", re.IGNORECASE),
    re.compile(r"^(.+): cannot open shared object file: No such file or directory$", re.IGNORECASE),
    re.compile(r"^dlopen\([^)]*\): Library not loaded: (.+)$", re.IGNORECASE),
]

NAME_SEPARATOR = "-"
PATH_DELIMITER = "/"


def missing_file_from_message(message: str) -> Optional[str]:
    for pattern in NOT_FOUND_PATTERNS:
        m = pattern.match(message.strip())
        if m:
            return m.group(1)
    return None


def module_name_for(file: str) -> str:
    """`foo/bar` -> `foo.bar`"""
    return file.replace(PATH_DELIMITER, ".")


def file_for(module_name: str) -> str:
    """`foo.bar` -> `foo/bar`"""
    return module_name.replace(".", PATH_DELIMITER)


class ModuleLoader(ABC):
    """Loads a single module file, raising ModuleLoadError on failure."""

    @abstractmethod
    def load(self, file: str) -> None:
        pass


class ImportlibModuleLoader(ModuleLoader):
    """
    Loads modules through importlib.

    A missing module is reported as NotFound for the requested file when the
    module itself or one of its parent packages is missing, and as NotFound
    for some other file when the module was found but failed to import one
    of its own dependencies.
    """

    def __init__(self, importer: Callable[[str], object] = importlib.import_module):
        self.importer = importer

    def load(self, file: str) -> None:
        module = module_name_for(file)
        try:
            self.importer(module)
        except ModuleNotFoundError as e:
            raise ModuleLoadError(file, self._classify_missing_module(file, module, e), e) from e
        except ImportError as e:
            missing = missing_file_from_message(str(e))
            kind = LoadErrorKind.not_found(missing) if missing else LoadErrorKind.other()
            raise ModuleLoadError(file, kind, e) from e
        except Exception as e:
            raise ModuleLoadError(file, LoadErrorKind.other(), e) from e

    def _classify_missing_module(self, file: str, module: str, error: ModuleNotFoundError) -> LoadErrorKind:
        missing = error.name
        if missing is None:
            token = missing_file_from_message(str(error))
            if token is None:
                return LoadErrorKind.other()
            missing = token
        if module == missing or module.startswith(missing + "."):
            return LoadErrorKind.not_found(file)
        return LoadErrorKind.not_found(file_for(missing))


class SelectiveLoader:
    def __init__(
        self,
        resolution: Resolution,
        loader: Optional[ModuleLoader] = None,
        platform_tags: Optional[Set[str]] = None,
    ):
        self.resolution = resolution
        self.loader = loader or ImportlibModuleLoader()
        self.platform_tags = platform_tags if platform_tags is not None else current_platform_tags()

    def load_required(self, groups: Optional[Iterable[str]] = None) -> List[str]:
        """
        Load the modules of every dependency in the requested groups.

        Returns the files that were loaded, in order.
        """
        groups = list(groups or []) or [DEFAULT_GROUP]
        loaded: List[str] = []

        for dep in self.resolution.dependencies:
            # Skip the dependency if it is not in any of the requested groups
            if not dep.in_groups(groups) or not dep.current_platform(self.platform_tags):
                continue
            loaded.extend(self._load_dependency(dep))

        return loaded

    def _load_dependency(self, dep: Dependency) -> List[str]:
        loaded: List[str] = []
        required_file = None
        try:
            for file in dep.requested_files():
                required_file = file
                self._load(dep, file)
                loaded.append(file)
        except ModuleLoadError as e:
            if dep.explicit_autorequire or e.kind.missing != required_file:
                raise
            if NAME_SEPARATOR not in dep.name:
                logger.debug(f"No module named after {dep.name}, skipping")
                return loaded

            namespaced_file = dep.name.replace(NAME_SEPARATOR, PATH_DELIMITER)
            try:
                self._load(dep, namespaced_file)
            except ModuleLoadError as retry_error:
                if retry_error.kind.missing != namespaced_file:
                    raise e
                logger.debug(f"Neither {required_file} nor {namespaced_file} found for {dep.name}, skipping")
            else:
                loaded.append(namespaced_file)
        return loaded

    def _load(self, dep: Dependency, file: str) -> None:
        try:
            self.loader.load(file)
        except ModuleLoadError as e:
            if e.kind.is_not_found:
                # handled by the caller
                raise
            raise LoadFailure(dep.name, file, e.cause or e) from e

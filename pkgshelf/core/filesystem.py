"""
Guard wrapped around every mutating filesystem call.

Callers can deny access to a path by overriding `check`; permission-shaped OS
errors raised inside the guarded block are converted to
FilesystemAccessDenied. Every other OS error propagates unchanged.
"""
from __future__ import annotations

import errno
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from pkgshelf.core.errors import FilesystemAccessDenied

logger = logging.getLogger(__name__)

_DENIED_ERRNOS = {errno.EACCES, errno.EPERM, errno.EROFS}


class FilesystemGuard:
    def check(self, path: Path, action: str) -> None:
        """Raise FilesystemAccessDenied to refuse `action` on `path`."""

    @contextmanager
    def access(self, path: Union[str, Path], action: str = "write") -> Iterator[Path]:
        p = Path(path)
        self.check(p, action)
        try:
            yield p
        except OSError as e:
            if e.errno in _DENIED_ERRNOS:
                logger.debug(f"Access denied while trying to {action} {p}: {e}")
                raise FilesystemAccessDenied(p, action) from e
            raise


class DenyListGuard(FilesystemGuard):
    """Guard refusing any mutation at or below the given paths."""

    def __init__(self, *denied: Union[str, Path]):
        self.denied = [Path(d) for d in denied]

    def check(self, path: Path, action: str) -> None:
        for d in self.denied:
            if path == d or d in path.parents:
                raise FilesystemAccessDenied(path, action)

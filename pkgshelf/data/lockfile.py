"""
Lock snapshot writer.

After activation the resolution is written to the project's lock file as YAML,
tagged with the pkgshelf version that wrote it.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from pkgshelf import __version__
from pkgshelf.core.filesystem import FilesystemGuard
from pkgshelf.data.resolution import Resolution

logger = logging.getLogger(__name__)


class LockfileWriter:
    def __init__(
        self,
        path: Union[str, Path],
        tool_version: str = __version__,
        guard: Optional[FilesystemGuard] = None,
    ):
        self.path = Path(path)
        self.tool_version = tool_version
        self.guard = guard or FilesystemGuard()

    def read_tool_version(self) -> Optional[str]:
        """Version tag of the existing lock file, if there is a readable one."""
        if not self.path.is_file():
            return None
        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            logger.warning(f"Ignoring unreadable lock file {self.path}: {e}")
            return None
        if not isinstance(raw, dict) or raw.get("tool_version") is None:
            return None
        return str(raw["tool_version"])

    def render(self, resolution: Resolution, tool_version: str) -> str:
        data: Dict[str, Any] = {
            "tool_version": tool_version,
            "specs": [
                {
                    "name": s.name,
                    "version": s.version,
                    "platform": s.platform,
                    "source": s.source.lock_entry() if s.source is not None else None,
                    "dependencies": sorted(s.dependencies),
                }
                for s in sorted(resolution.specs, key=lambda s: (s.name, s.version, s.platform))
            ],
            "dependencies": [
                d.model_dump(mode="json") for d in sorted(resolution.dependencies, key=lambda d: d.name)
            ],
        }
        return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)

    def persist(self, resolution: Resolution, preserve_tool_version_tag: bool = False) -> bool:
        """
        Write the lock snapshot. Returns False when the file was already up to date.

        With `preserve_tool_version_tag`, a version tag already present in the
        lock file is kept instead of being replaced by the running version.
        """
        tool_version = self.tool_version
        if preserve_tool_version_tag:
            tool_version = self.read_tool_version() or tool_version

        content = self.render(resolution, tool_version)
        if self.path.is_file() and self.path.read_text(encoding="utf-8") == content:
            return False

        with self.guard.access(self.path) as p:
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(content, encoding="utf-8")
        logger.debug(f"Wrote lock snapshot to {self.path}")
        return True

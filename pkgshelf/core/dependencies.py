from pathlib import Path
from typing import Optional
import os

from pkgshelf.data.resolution import Resolution
from pkgshelf.data.settings import load_settings
from pkgshelf.domain.models import Settings
from pkgshelf.services.runtime import Runtime
from pkgshelf.storage.fs_artifact_store import FilesystemArtifactStore

PROJECT_ROOT_ENV_VAR = "PKGSHELF_PROJECT_ROOT"

_settings: Optional[Settings] = None
_store: Optional[FilesystemArtifactStore] = None
_resolution: Optional[Resolution] = None
_runtime: Optional[Runtime] = None

def get_project_root() -> Path:
    env_path = os.environ.get(PROJECT_ROOT_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path.cwd()

def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = load_settings(get_project_root())
    return _settings

def get_store() -> FilesystemArtifactStore:
    global _store
    if _store is None:
        _store = FilesystemArtifactStore(get_settings().install_root)
    return _store

def set_resolution(resolution: Optional[Resolution]) -> None:
    """Hand over the resolver's result; drops the runtime built for the previous one."""
    global _resolution, _runtime
    _resolution = resolution
    _runtime = None

def get_runtime() -> Optional[Runtime]:
    global _runtime
    if _runtime is None and _resolution is not None:
        _runtime = Runtime(_resolution, get_project_root(), get_settings(), get_store())
    return _runtime

def reset() -> None:
    global _settings, _store, _resolution, _runtime
    _settings = None
    _store = None
    _resolution = None
    _runtime = None

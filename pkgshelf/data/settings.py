from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Mapping, Optional

import yaml

from pkgshelf.domain.models import Settings

logger = logging.getLogger(__name__)


CONFIG_DIR_NAME = ".pkgshelf"
INSTALL_ROOT_ENV_VAR = "PKGSHELF_INSTALL_ROOT"
NO_PRUNE_ENV_VAR = "PKGSHELF_NO_PRUNE"
WITHOUT_ENV_VAR = "PKGSHELF_WITHOUT"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def settings_path(project_root: Path) -> Path:
    return Path(project_root) / CONFIG_DIR_NAME / "config.json"


def load_settings(project_root: Path, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Load the project settings.

    Priority:
    1. Environment variables (PKGSHELF_INSTALL_ROOT, PKGSHELF_NO_PRUNE, PKGSHELF_WITHOUT)
    2. <project_root>/.pkgshelf/config.json
    3. Model defaults
    """
    env = os.environ if environ is None else environ
    path = settings_path(project_root)
    if path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            settings = Settings(**raw)
        except Exception as e:
            # A broken config file falls back to defaults instead of blocking every command.
            logger.warning(f"Failed to load settings from {path}: {e}")
            settings = Settings()
    else:
        settings = Settings()

    if env.get(INSTALL_ROOT_ENV_VAR):
        settings.install_root = str(Path(env[INSTALL_ROOT_ENV_VAR]).expanduser())
    if env.get(NO_PRUNE_ENV_VAR):
        settings.no_prune = env[NO_PRUNE_ENV_VAR].strip().lower() in _TRUE_VALUES
    if env.get(WITHOUT_ENV_VAR):
        settings.without = [g for g in env[WITHOUT_ENV_VAR].split(":") if g]
    return settings


def save_settings(project_root: Path, settings: Settings) -> None:
    path = settings_path(project_root)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")


def find_project_spec_name(project_root: Path, pattern: str = "*.pkgspec") -> Optional[str]:
    """
    Name declared by the project-local package definition file, if any.

    The file is YAML with at least a top-level `name` key. When several files
    match, the first one in sorted order wins.
    """
    for path in sorted(Path(project_root).glob(pattern)):
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            logger.warning(f"Ignoring unreadable package definition {path}: {e}")
            continue
        if isinstance(raw, dict) and raw.get("name"):
            return str(raw["name"])
    return None

from pathlib import Path

import pytest

from pkgshelf.domain.models import Dependency, PackageSpec
from pkgshelf.services.sources import GitSource
from pkgshelf.storage.fs_artifact_store import FilesystemArtifactStore


def _install(store: FilesystemArtifactStore, spec: PackageSpec) -> PackageSpec:
    """Lay out an installed package in the store the way the installer would."""
    full_path = Path(spec.full_path)
    (full_path / "lib").mkdir(parents=True, exist_ok=True)

    spec_file = Path(spec.spec_file)
    spec_file.parent.mkdir(parents=True, exist_ok=True)
    spec_file.write_text(f"name: {spec.name}\nversion: '{spec.version}'\n", encoding="utf-8")

    if isinstance(spec.source, GitSource):
        (spec.source.install_path / ".git").mkdir(parents=True, exist_ok=True)
        (spec.source.install_path / ".git" / "HEAD").write_text(spec.source.revision, encoding="utf-8")
        spec.source.archive_cache_path.mkdir(parents=True, exist_ok=True)
    else:
        archive = Path(spec.cache_file)
        archive.parent.mkdir(parents=True, exist_ok=True)
        archive.write_bytes(f"{spec.full_name}".encode("utf-8"))

    for executable in spec.executables:
        store.bin_dir.mkdir(parents=True, exist_ok=True)
        (store.bin_dir / executable).write_text("#!/bin/sh\n", encoding="utf-8")
    return spec


@pytest.fixture
def store(tmp_path: Path) -> FilesystemArtifactStore:
    root = tmp_path / "store"
    root.mkdir()
    return FilesystemArtifactStore(root)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def install(store: FilesystemArtifactStore):
    return lambda spec: _install(store, spec)


@pytest.fixture
def make_deps():
    def _make(*names: str, groups=None):
        return [Dependency(name=n, groups=groups or ["default"]) for n in names]

    return _make

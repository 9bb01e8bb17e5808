from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml

from pkgshelf import __version__
from pkgshelf.core.errors import PackageNotInstalled, VersionConflict
from pkgshelf.data.lockfile import LockfileWriter
from pkgshelf.data.resolution import Resolution
from pkgshelf.domain.models import Dependency
from pkgshelf.domain.search_path import SearchPath
from pkgshelf.services.activator import (
    MANPATH_ENV_VAR,
    ORIG_MANPATH_ENV_VAR,
    ActivationRegistry,
    Activator,
    manual_dirs,
    setup_manpath,
)


def _activator(resolution, **kwargs) -> Activator:
    kwargs.setdefault("search_path", SearchPath(["/seed", "/stdlib"], insertion_index=1))
    kwargs.setdefault("environ", {})
    return Activator(resolution, **kwargs)


def test_activate_inserts_load_paths_after_seeded_entries(store, install, make_deps) -> None:
    rack = install(store.registry_spec("rack", "1.0.0"))
    thin = install(store.registry_spec("thin", "1.2.0", dependencies=["rack"]))
    resolution = Resolution([rack, thin], make_deps("thin"))

    activator = _activator(resolution).activate()

    assert activator.search_path.entries == [
        "/seed",
        rack.load_paths[0],
        thin.load_paths[0],
        "/stdlib",
    ]
    assert activator.registry.names() == ["rack", "thin"]


def test_activate_filters_by_groups(store, install) -> None:
    rack = install(store.registry_spec("rack", "1.0.0"))
    rspec = install(store.registry_spec("rspec", "3.0.0"))
    resolution = Resolution(
        [rack, rspec],
        [Dependency(name="rack"), Dependency(name="rspec", groups=["test"])],
    )

    activator = _activator(resolution).activate(["test"])

    assert rspec.load_paths[0] in activator.search_path
    assert rack.load_paths[0] not in activator.search_path


def test_activate_without_groups_honors_without(store, install) -> None:
    rack = install(store.registry_spec("rack", "1.0.0"))
    rspec = install(store.registry_spec("rspec", "3.0.0"))
    resolution = Resolution(
        [rack, rspec],
        [Dependency(name="rack"), Dependency(name="rspec", groups=["test"])],
        without=["test"],
    )

    activator = _activator(resolution).activate()

    assert rack.load_paths[0] in activator.search_path
    assert rspec.load_paths[0] not in activator.search_path


def test_activate_rejects_uninstalled_package(store, make_deps) -> None:
    missing = store.registry_spec("rack", "1.0.0", installed=False)
    resolution = Resolution([missing], make_deps("rack"))

    with pytest.raises(PackageNotInstalled) as excinfo:
        _activator(resolution).activate()

    assert excinfo.value.name == "rack"
    assert "rack-1.0.0" in str(excinfo.value)


def test_activate_detects_version_conflict_with_active_package(store, install, make_deps) -> None:
    registry = ActivationRegistry()
    registry.mark_loaded(store.registry_spec("rack", "0.9.1"))
    rack = install(store.registry_spec("rack", "1.0.0"))
    resolution = Resolution([rack], make_deps("rack"))

    with pytest.raises(VersionConflict) as excinfo:
        _activator(resolution, registry=registry).activate()

    message = str(excinfo.value)
    assert "0.9.1" in message
    assert "1.0.0" in message
    assert "pkgshelf exec" in message
    assert excinfo.value.active_version == "0.9.1"
    assert excinfo.value.required_version == "1.0.0"


def test_activate_detects_conflict_within_one_call(store, install, make_deps) -> None:
    registry = ActivationRegistry()
    old = install(store.registry_spec("rack", "1.0.0"))
    registry.mark_loaded(old)
    new = install(store.registry_spec("rack", "2.0.0"))
    resolution = Resolution([old, new], make_deps("rack"))

    with pytest.raises(VersionConflict) as excinfo:
        _activator(resolution, registry=registry).activate()

    assert excinfo.value.active_version == "1.0.0"
    assert excinfo.value.required_version == "2.0.0"


def test_failed_activation_leaves_state_untouched(store, install, make_deps) -> None:
    rack = install(store.registry_spec("rack", "1.0.0"))
    broken = store.registry_spec("thin", "1.2.0", installed=False)
    resolution = Resolution([rack, broken], make_deps("rack", "thin"))
    activator = _activator(resolution)
    before = list(activator.search_path.entries)

    with pytest.raises(PackageNotInstalled):
        activator.activate()

    assert activator.search_path.entries == before
    assert "rack" not in activator.registry


def test_reactivation_drops_previous_entries(store, install) -> None:
    rack = install(store.registry_spec("rack", "1.0.0"))
    rspec = install(store.registry_spec("rspec", "3.0.0"))
    resolution = Resolution(
        [rack, rspec],
        [Dependency(name="rack"), Dependency(name="rspec", groups=["test"])],
    )
    activator = _activator(resolution)

    activator.activate(["test"])
    activator.activate(["default"])

    assert activator.search_path.entries == ["/seed", rack.load_paths[0], "/stdlib"]


def test_activate_persists_lock_snapshot(store, install, make_deps, tmp_path) -> None:
    rack = install(store.registry_spec("rack", "1.0.0"))
    lockfile = tmp_path / "pkgshelf.lock"
    lockfile.write_text("tool_version: 0.0.9\nspecs: []\n", encoding="utf-8")
    resolution = Resolution([rack], make_deps("rack"))

    _activator(resolution, lock_writer=LockfileWriter(lockfile)).activate()

    data = yaml.safe_load(lockfile.read_text(encoding="utf-8"))
    assert data["tool_version"] == "0.0.9"
    assert data["specs"][0]["name"] == "rack"


def _package_with_manual(root: Path, name: str) -> Path:
    lib = root / name / "lib"
    lib.mkdir(parents=True)
    (root / name / "man" / "man1").mkdir(parents=True)
    return lib


def test_manual_dirs_need_a_section_directory(tmp_path) -> None:
    with_man = _package_with_manual(tmp_path, "a")
    without_man = tmp_path / "b" / "lib"
    without_man.mkdir(parents=True)
    (tmp_path / "b" / "man").mkdir()

    assert manual_dirs([str(with_man), str(without_man), str(tmp_path)]) == [
        str(tmp_path / "a" / "man")
    ]


def test_setup_manpath_merges_and_saves_original(tmp_path) -> None:
    a = _package_with_manual(tmp_path, "a")
    b = _package_with_manual(tmp_path, "b")
    original = os.pathsep.join(["/usr/share/man", str(tmp_path / "b" / "man")])
    environ = {MANPATH_ENV_VAR: original}

    setup_manpath([str(a), str(b)], environ)

    assert environ[ORIG_MANPATH_ENV_VAR] == original
    assert environ[MANPATH_ENV_VAR].split(os.pathsep) == [
        str(tmp_path / "a" / "man"),
        str(tmp_path / "b" / "man"),
        "/usr/share/man",
    ]


def test_setup_manpath_without_manuals_keeps_manpath(tmp_path) -> None:
    environ = {ORIG_MANPATH_ENV_VAR: "stale"}

    assert setup_manpath([str(tmp_path)], environ) is None
    assert MANPATH_ENV_VAR not in environ
    assert ORIG_MANPATH_ENV_VAR not in environ


def test_activate_exposes_package_manuals(store, install, make_deps) -> None:
    rack = install(store.registry_spec("rack", "1.0.0"))
    (Path(rack.full_path) / "man" / "man1").mkdir(parents=True)
    environ = {}

    _activator(Resolution([rack], make_deps("rack")), environ=environ).activate()

    assert environ[MANPATH_ENV_VAR] == str(Path(rack.full_path) / "man")

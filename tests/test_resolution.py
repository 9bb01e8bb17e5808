from __future__ import annotations

from pkgshelf.data.resolution import Resolution
from pkgshelf.domain.models import Dependency, PackageSpec


def _spec(name: str, *deps: str) -> PackageSpec:
    return PackageSpec(name=name, version="1.0", dependencies=list(deps))


def _resolution(**kwargs) -> Resolution:
    specs = [_spec("rack"), _spec("thin", "rack", "daemons"), _spec("daemons"), _spec("rspec", "diff-lcs"), _spec("diff-lcs")]
    deps = [
        Dependency(name="thin"),
        Dependency(name="rspec", groups=["test", "development"]),
        Dependency(name="win32-service", platforms=["win32-never"]),
    ]
    return Resolution(specs, deps, **kwargs)


def test_specs_for_follows_runtime_dependencies() -> None:
    names = [s.name for s in _resolution().specs_for(["default"])]
    assert names == ["rack", "thin", "daemons"]


def test_specs_for_multiple_groups_keeps_resolution_order() -> None:
    names = [s.name for s in _resolution().specs_for(["test", "default"])]
    assert names == ["rack", "thin", "daemons", "rspec", "diff-lcs"]


def test_requested_specs_excludes_without_groups() -> None:
    resolution = _resolution(without=["test", "development"])
    assert [s.name for s in resolution.requested_specs()] == ["rack", "thin", "daemons"]


def test_groups_in_declaration_order() -> None:
    assert _resolution().groups() == ["default", "test", "development"]


def test_dependencies_for() -> None:
    resolution = _resolution()
    assert [d.name for d in resolution.dependencies_for(["test"])] == ["rspec"]
    assert len(resolution.dependencies_for([])) == 3


def test_dependency_requested_files() -> None:
    assert Dependency(name="a").requested_files() == ["a"]
    assert Dependency(name="a", autorequire=True).requested_files() == ["a"]
    assert Dependency(name="a", autorequire=False).requested_files() == []
    assert Dependency(name="a", autorequire=["x", "y"]).requested_files() == ["x", "y"]
    assert Dependency(name="a").explicit_autorequire is False
    assert Dependency(name="a", autorequire=True).explicit_autorequire is True


def test_requested_specs_explicit_without_overrides_stored_one() -> None:
    resolution = _resolution(without=["test", "development"])

    names = [s.name for s in resolution.requested_specs(without=[])]

    assert names == ["rack", "thin", "daemons", "rspec", "diff-lcs"]
    assert resolution.without == ["test", "development"]

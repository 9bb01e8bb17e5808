from __future__ import annotations

import os

from pkgshelf.domain.search_path import SearchPath, insert_paths


def test_insert_paths_prepends_without_index() -> None:
    result = insert_paths(["/a", "/b"], ["/x", "/y"], None)
    assert result == ["/a", "/b", "/x", "/y"]


def test_insert_paths_goes_after_seeded_entries() -> None:
    result = insert_paths(["/a", "/b"], ["/override", "/stdlib"], 1)
    assert result == ["/override", "/a", "/b", "/stdlib"]


def test_insert_paths_never_duplicates() -> None:
    existing = ["/x", "/a"]
    result = insert_paths(["/a", "/b", "/b", "/x", "/c"], existing, 0)
    assert result == ["/b", "/c", "/x", "/a"]
    assert len(result) == len(set(result))
    # input is left untouched
    assert existing == ["/x", "/a"]


def test_insert_paths_clamps_index() -> None:
    assert insert_paths(["/a"], ["/x"], 10) == ["/x", "/a"]


def test_repeated_inserts_keep_processing_order() -> None:
    path = SearchPath(["/seed", "/stdlib"], insertion_index=1)
    path.insert(["/first/lib"])
    path.insert(["/second/lib", "/first/lib"])
    path.insert(["/third/lib"])

    assert path.entries == ["/seed", "/first/lib", "/second/lib", "/third/lib", "/stdlib"]
    assert path.contributed == {"/first/lib", "/second/lib", "/third/lib"}


def test_repeated_inserts_without_index_keep_processing_order() -> None:
    path = SearchPath(["/stdlib"])
    path.insert(["/first/lib"])
    path.insert(["/second/lib"])

    assert path.entries == ["/first/lib", "/second/lib", "/stdlib"]


def test_insert_skips_seeded_entries() -> None:
    path = SearchPath(["/seed", "/stdlib"], insertion_index=1)
    added = path.insert(["/seed", "/new"])

    assert added == ["/new"]
    assert path.entries == ["/seed", "/new", "/stdlib"]
    assert "/seed" not in path.contributed


def test_reset_removes_only_contributed_entries() -> None:
    path = SearchPath(["/seed", "/stdlib"], insertion_index=1)
    path.insert(["/pkg/lib"])

    baseline = path.reset()

    assert baseline.entries == ["/seed", "/stdlib"]
    assert baseline.insertion_index == 1
    assert baseline.contributed == set()
    # the original value is unchanged
    assert "/pkg/lib" in path


def test_from_process_counts_pythonpath_as_seeded() -> None:
    entries = ["/script", "/override", "/usr/lib/python3", "/site-packages"]
    path = SearchPath.from_process(entries, {"PYTHONPATH": os.pathsep.join(["/override"])})

    assert path.insertion_index == 2
    path.insert(["/pkg/lib"])
    assert path.entries == ["/script", "/override", "/pkg/lib", "/usr/lib/python3", "/site-packages"]


def test_from_process_deduplicates() -> None:
    path = SearchPath.from_process(["/script", "/lib", "/lib"], {})
    assert path.entries == ["/script", "/lib"]
    assert path.insertion_index == 1


def test_apply_replaces_target_in_place() -> None:
    target = ["/old"]
    alias = target
    SearchPath(["/a", "/b"]).apply(target)
    assert alias == ["/a", "/b"]

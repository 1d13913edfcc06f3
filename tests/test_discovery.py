"""Tests for podman_compose_mgr.discovery.scanner."""

from __future__ import annotations

from pathlib import Path

import pytest

from podman_compose_mgr.discovery import FsDiscovery
from podman_compose_mgr.discovery.scanner import compile_patterns, path_passes_filters
from podman_compose_mgr.errors import PatternError
from podman_compose_mgr.models import ScanOptions


def _scan(root: Path, include=(), exclude=()):
    return FsDiscovery().scan(ScanOptions(root=root, include=tuple(include), exclude=tuple(exclude)))


def test_fixture_tree_yields_seven_pairs(fixture_tree: Path) -> None:
    result = _scan(fixture_tree)

    pairs = result.pairs()
    assert len(pairs) == 7
    assert ("djf/rusty-golf", "golf") in pairs
    assert ("pihole/pihole:latest", "pihole") in pairs
    assert ("ubuntu/squid:latest", "squid") in pairs
    assert ("djf/ddns", "ddns") in pairs
    assert ("nginx:alpine", "web") in pairs
    assert pairs.count(("djf/dup", "dup")) == 1
    assert pairs.count(("djf/rusty-golf", "golf")) == 2
    assert all(image != "djf/worker" for image, _ in pairs)


def test_fixture_tree_is_sorted_by_image_then_container(fixture_tree: Path) -> None:
    result = _scan(fixture_tree)

    keys = [item.sort_key() for item in result.images]
    assert keys == sorted(keys)


def test_malformed_unit_is_skipped_with_diagnostic(fixture_tree: Path) -> None:
    result = _scan(fixture_tree)

    skipped = {path.name: message for path, message in result.skipped}
    assert "bad.container" in skipped
    assert "Image" in skipped["bad.container"]


def test_build_files_are_indexed_per_directory(fixture_tree: Path) -> None:
    result = _scan(fixture_tree)

    info = result.dir_info(fixture_tree / "image3")
    assert info is not None
    assert [path.name for path in info.dockerfiles] == ["Dockerfile"]
    assert [path.name for path in info.makefiles] == ["Makefile"]
    assert info.makefile_targets == ["all", "clean"]
    assert info.neighbor_image() == "djf/ddns"
    assert info.buildable


def test_entry_and_source_dir_recorded(fixture_tree: Path) -> None:
    result = _scan(fixture_tree)

    golf = [item for item in result.images if item.container == "golf"]
    assert {item.source_dir.name for item in golf} == {"image1", "image_1"}
    assert all(item.entry_path.name == "docker-compose.yml" for item in golf)


def test_exclude_wins_over_include(fixture_tree: Path) -> None:
    result = _scan(fixture_tree, include=["image"], exclude=["image2"])

    images = {image for image, _ in result.pairs()}
    assert "pihole/pihole:latest" not in images
    assert "djf/rusty-golf" in images


def test_include_filters_to_matching_paths(fixture_tree: Path) -> None:
    result = _scan(fixture_tree, include=[r"image3/"])

    assert result.pairs() == [("djf/ddns", "ddns")]


def test_invalid_pattern_aborts_scan(fixture_tree: Path) -> None:
    with pytest.raises(PatternError) as excinfo:
        _scan(fixture_tree, include=["("])

    assert excinfo.value.pattern == "("


def test_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        _scan(tmp_path / "missing")


def test_root_must_be_directory(tmp_path: Path) -> None:
    target = tmp_path / "file.txt"
    target.write_text("x", encoding="utf-8")

    with pytest.raises(NotADirectoryError):
        _scan(target)


def test_symlinked_files_are_not_followed(tree_builder) -> None:
    tree_builder.write(
        {
            "real/docker-compose.yml": """
            services:
              app:
                image: djf/app
                container_name: app
            """,
        }
    )
    link_dir = tree_builder.path("linked")
    link_dir.mkdir()
    (link_dir / "docker-compose.yml").symlink_to(tree_builder.path("real/docker-compose.yml"))

    result = tree_builder.scan()

    assert [item.source_dir.name for item in result.images] == ["real"]


def test_invalid_yaml_is_skipped_but_scan_continues(tree_builder) -> None:
    tree_builder.write(
        {
            "bad/docker-compose.yml": "services: [unclosed\n",
            "good/docker-compose.yml": """
            services:
              app:
                image: djf/app
                container_name: app
            """,
        }
    )

    result = tree_builder.scan()

    assert result.pairs() == [("djf/app", "app")]
    assert [path.parent.name for path, _ in result.skipped] == ["bad"]


def test_filter_helpers() -> None:
    include = compile_patterns(["keep"])
    exclude = compile_patterns(["drop"])

    assert path_passes_filters("/a/keep/x", include, exclude)
    assert not path_passes_filters("/a/keep/drop", include, exclude)
    assert not path_passes_filters("/a/other", include, exclude)
    assert path_passes_filters("/a/other", [], [])

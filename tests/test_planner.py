"""Tests for podman_compose_mgr.rebuild.planner."""

from __future__ import annotations

from pathlib import Path

from podman_compose_mgr.rebuild import BuildPlanner, RebuildJobSpec


def _spec(root: Path, entry: str, image: str = "djf/app") -> RebuildJobSpec:
    entry_path = root / entry
    return RebuildJobSpec(image=image, container="app", entry_path=entry_path, source_dir=entry_path.parent)


def test_dockerfile_plan_pulls_base_then_builds(tree_builder) -> None:
    tree_builder.write(
        {
            "app/app.container": "[Container]\nImage=djf/app\n",
            "app/Dockerfile": "FROM alpine:latest\nRUN true\n",
        }
    )
    planner = BuildPlanner(podman_bin="podman", build_args=["A=1", "B=2"], no_cache=True)

    plan = planner.plan_build(_spec(tree_builder.path(), "app/app.container"))

    dockerfile = tree_builder.path("app/Dockerfile")
    assert [command.argv for command in plan.commands] == [
        ("podman", "pull", "alpine:latest"),
        (
            "podman", "build", "-t", "djf/app", "-f", str(dockerfile), "--no-cache",
            "--build-arg", "A=1", "--build-arg", "B=2", str(dockerfile.parent),
        ),
    ]
    assert plan.notes == [f"Building djf/app from {dockerfile}"]


def test_unit_specific_dockerfile_wins(tree_builder) -> None:
    tree_builder.write(
        {
            "app/app.container": "[Container]\nImage=djf/app\n",
            "app/Dockerfile": "FROM alpine\n",
            "app/Dockerfile.app": "FROM scratch\n",
        }
    )
    planner = BuildPlanner()

    plan = planner.plan_build(_spec(tree_builder.path(), "app/app.container"))

    assert [command.argv[1] for command in plan.commands] == ["build"]
    assert plan.commands[0].argv[5] == str(tree_builder.path("app/Dockerfile.app"))
    assert "No pullable base image in FROM instructions" in plan.notes


def test_makefile_plan_runs_clean_then_default(tree_builder) -> None:
    tree_builder.write(
        {
            "app/docker-compose.yml": "services:\n  app:\n    image: djf/app\n    container_name: app\n",
            "app/Makefile": "all:\n\ttrue\n",
        }
    )
    planner = BuildPlanner(make_bin="gmake")

    plan = planner.plan_build(_spec(tree_builder.path(), "app/docker-compose.yml"))

    directory = str(tree_builder.path("app"))
    assert [command.argv for command in plan.commands] == [
        ("gmake", "-C", directory, "clean"),
        ("gmake", "-C", directory),
    ]


def test_pull_fallback_without_build_files(tree_builder) -> None:
    tree_builder.write(
        {"app/docker-compose.yml": "services:\n  app:\n    image: djf/app\n    container_name: app\n"}
    )
    planner = BuildPlanner(podman_bin="/usr/bin/podman")

    plan = planner.plan_build(_spec(tree_builder.path(), "app/docker-compose.yml"))

    assert [command.argv for command in plan.commands] == [("/usr/bin/podman", "pull", "djf/app")]
    assert plan.notes[0].startswith("No Dockerfile or Makefile found for")


def test_display_prefixes_dollar() -> None:
    plan = BuildPlanner().plan_pull("djf/app")

    assert plan.commands[0].display() == "$ podman pull djf/app"
    assert plan.commands[0].program == "podman"

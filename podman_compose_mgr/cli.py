"""CLI entrypoint for podman-compose-mgr."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import List

from .config import ManagerConfig, load_config
from .discovery.scanner import FsDiscovery
from .errors import ConfigError, DateParseError, PodmanQueryError, TerminalError
from .interrupt import SignalInterrupt
from .logging import configure_logging, get_logger
from .podman.cli import PodmanCli
from .podman.dates import parse_podman_date
from .podman.simulate import SimulatedPodman
from .rebuild.orchestrator import RebuildOrchestrator
from .rebuild.planner import BuildPlanner
from .service import AppCore
from .simulate_view import simulate_lines
from .tui.state import ViewMode
from .walk import PromptWalker


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def _timestamp(value: str) -> datetime:
    try:
        return parse_podman_date(value)
    except DateParseError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="podman-compose-mgr",
        description="Find images declared in compose files and Quadlet units, then pull or rebuild them.",
    )
    parser.add_argument(
        "-p",
        "--path",
        type=Path,
        default=Path("."),
        help="Directory tree to scan (defaults to current directory).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity; repeat for debug output.",
    )
    parser.add_argument(
        "-e",
        "--exclude-path-patterns",
        dest="exclude",
        action="append",
        default=[],
        metavar="REGEX",
        help="Skip files whose path matches this regex (repeatable, wins over --include).",
    )
    parser.add_argument(
        "-i",
        "--include-path-patterns",
        dest="include",
        action="append",
        default=[],
        metavar="REGEX",
        help="Only consider files whose path matches one of these regexes (repeatable).",
    )
    parser.add_argument(
        "-b",
        "--build-args",
        dest="build_args",
        action="append",
        default=[],
        metavar="ARG",
        help="Extra --build-arg passed to podman build (repeatable).",
    )
    parser.add_argument("--tui", action="store_true", help="Start the interactive terminal UI.")
    parser.add_argument(
        "--tui-rebuild-all",
        action="store_true",
        help="Start the terminal UI and queue a rebuild of every discovered image.",
    )
    parser.add_argument(
        "--rebuild-view-line-buffer-max",
        type=_positive_int,
        default=None,
        metavar="N",
        help="Lines of output kept per rebuild job.",
    )
    parser.add_argument("--podman-bin", default=None, help="podman executable to use.")
    parser.add_argument("--no-cache", action="store_true", help="Pass --no-cache to podman build.")
    parser.add_argument(
        "--simulate",
        type=Path,
        default=None,
        metavar="FIXTURE",
        help="Print a dry-run listing using podman answers replayed from a JSON fixture.",
    )
    parser.add_argument(
        "--simulate-view",
        choices=[mode.value for mode in ViewMode],
        default=ViewMode.BY_CONTAINER.value,
        help="Row grouping for --simulate output.",
    )
    parser.add_argument(
        "--simulate-now",
        type=_timestamp,
        default=None,
        metavar="TIMESTAMP",
        help="Reference time for ages in --simulate output.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Config file to load.")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    return parser


def _merged_patterns(config_values: List[str], cli_values: List[str]) -> List[str]:
    return [*config_values, *cli_values]


def _planner(args: argparse.Namespace, config: ManagerConfig) -> BuildPlanner:
    return BuildPlanner(
        podman_bin=args.podman_bin or config.rebuild.podman_bin or "podman",
        build_args=_merged_patterns(config.rebuild.build_args, args.build_args),
        no_cache=bool(args.no_cache or config.rebuild.no_cache),
    )


def _run_simulate(args: argparse.Namespace, include: List[str], exclude: List[str]) -> None:
    core = AppCore(FsDiscovery(), SimulatedPodman.from_file(args.simulate))
    result = core.scan_images(args.path, include, exclude)
    for line in simulate_lines(result, core.podman, ViewMode(args.simulate_view), args.simulate_now):
        print(line)


def _run_tui(
    args: argparse.Namespace, config: ManagerConfig, include: List[str], exclude: List[str]
) -> None:
    # Imported here so the one-shot path never needs termios.
    from .tui.runtime import LoopSettings, TuiApp

    configure_logging(verbose=args.verbose, log_file=args.log_file, console=False)
    planner = _planner(args, config)
    core = AppCore(FsDiscovery(), PodmanCli(planner.podman_bin))

    def _orchestrator(notify) -> RebuildOrchestrator:
        return RebuildOrchestrator(
            planner,
            notify,
            prompt_width=config.rebuild.prompt_width,
            on_interrupt=config.rebuild.on_interrupt,
        )

    settings = LoopSettings(
        root=args.path,
        include=include,
        exclude=exclude,
        output_limit=args.rebuild_view_line_buffer_max or config.rebuild.line_buffer_max,
        auto_rebuild_all=bool(args.tui_rebuild_all),
        tick_interval=config.tick_ms / 1000,
    )
    TuiApp(core, _orchestrator, SignalInterrupt(), settings).run()


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for podman-compose-mgr."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose, log_file=args.log_file)
    logger = get_logger("cli")

    try:
        config = load_config(args.config or args.path)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    include = _merged_patterns(config.include, args.include)
    exclude = _merged_patterns(config.exclude, args.exclude)
    logger.debug("include=%s exclude=%s", include, exclude)

    try:
        if args.simulate is not None:
            _run_simulate(args, include, exclude)
        elif args.tui or args.tui_rebuild_all:
            _run_tui(args, config, include, exclude)
        else:
            planner = _planner(args, config)
            core = AppCore(FsDiscovery(), PodmanCli(planner.podman_bin))
            PromptWalker(core, planner).run(args.path, include, exclude)
    except KeyboardInterrupt:
        parser.exit(130, "\nInterrupted\n")
    except (ConfigError, TerminalError, PodmanQueryError, DateParseError) as exc:
        parser.exit(1, f"podman-compose-mgr: {exc}\n")
    except OSError as exc:
        parser.exit(1, f"podman-compose-mgr: {exc}\nRun with --verbose for more details.\n")


if __name__ == "__main__":
    main(sys.argv[1:])

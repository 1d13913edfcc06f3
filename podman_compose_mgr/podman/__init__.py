"""Container runtime queries: real podman CLI and the replayable simulation."""

from .cli import PodmanCli, file_exists_and_readable
from .dates import NEVER_OBSERVED, format_time_ago, parse_podman_date, staleness_key
from .simulate import ImageRecord, SimulatedPodman, load_fixture

__all__ = [
    "ImageRecord",
    "NEVER_OBSERVED",
    "PodmanCli",
    "SimulatedPodman",
    "file_exists_and_readable",
    "format_time_ago",
    "load_fixture",
    "parse_podman_date",
    "staleness_key",
]

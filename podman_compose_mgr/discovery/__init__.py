"""Directory-tree discovery of compose, Quadlet, Dockerfile and Makefile declarations."""

from .buildfiles import dockerfile_base_image, dockerfile_candidates, parse_makefile_targets
from .compose import ComposeDeclarations, parse_compose_file
from .quadlet import QuadletUnit, parse_container_file
from .scanner import FsDiscovery, compile_patterns, path_passes_filters

__all__ = [
    "ComposeDeclarations",
    "FsDiscovery",
    "QuadletUnit",
    "compile_patterns",
    "dockerfile_base_image",
    "dockerfile_candidates",
    "parse_compose_file",
    "parse_container_file",
    "parse_makefile_targets",
    "path_passes_filters",
]

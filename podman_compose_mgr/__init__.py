"""Discover, inspect and rebuild podman-managed images declared across a directory tree."""

__version__ = "0.4.0"

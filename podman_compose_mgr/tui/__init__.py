"""Interactive model-view-update front end."""

from .rows import build_rows
from .state import ItemRow, Model, RebuildState, UiState, ViewMode
from .update import update
from .view import render

__all__ = ["ItemRow", "Model", "RebuildState", "UiState", "ViewMode", "build_rows", "render", "update"]

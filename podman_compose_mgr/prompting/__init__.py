"""Width-aware interactive prompt rendering."""

from .grammar import (
    FragmentKind,
    GrammarFragment,
    format_fragments,
    minimum_width,
    render_fragments,
)
from .rebuild_prompt import REBUILD_CHOICES, build_rebuild_fragments, choice_help, resolve_choice

__all__ = [
    "FragmentKind",
    "GrammarFragment",
    "REBUILD_CHOICES",
    "build_rebuild_fragments",
    "choice_help",
    "format_fragments",
    "minimum_width",
    "render_fragments",
    "resolve_choice",
]

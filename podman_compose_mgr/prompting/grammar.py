"""Fragment grammar for single-line prompts that must fit a terminal width.

A prompt is an ordered list of :class:`GrammarFragment`. Formatting never
touches fragments that are not shortenable; shortenable ones get an
ellipsized ``shortened_alt`` body. Image names keep their head
(``djf/rusty-g...``) while paths and names keep their tail (``...image1``).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence

ELLIPSIS = "..."
#: Smallest body a shortenable fragment is reduced to: one character plus the ellipsis.
MIN_BODY = len(ELLIPSIS) + 1

# Room reserved past the fixed text when splitting the budget evenly.
_SLACK = 5


class FragmentKind(Enum):
    VERBIAGE = "verbiage"
    USER_CHOICE = "user_choice"
    IMAGE = "image"
    COMPOSE_PATH = "compose_path"
    CONTAINER_NAME = "container_name"
    FILE_NAME = "file_name"


@dataclass(frozen=True)
class GrammarFragment:
    """One labeled unit of prompt text."""

    text: str
    kind: FragmentKind
    position: int = 0
    prefix: str = ""
    suffix: str = ""
    shortenable: bool = False
    visible: bool = True
    shortened_alt: Optional[str] = None
    is_default: bool = False

    @property
    def body(self) -> str:
        return self.shortened_alt if self.shortened_alt is not None else self.text

    @property
    def width(self) -> int:
        if not self.visible:
            return 0
        return len(self.prefix) + len(self.body) + len(self.suffix)

    def ellipsized(self, keep: int) -> str:
        keep = max(1, keep)
        if self.kind is FragmentKind.IMAGE:
            return self.text[:keep] + ELLIPSIS
        return ELLIPSIS + self.text[-keep:]


def _total(fragments: Sequence[GrammarFragment]) -> int:
    return sum(fragment.width for fragment in fragments)


def _even_split(fragments: List[GrammarFragment], shortenable: List[int], width: int) -> None:
    fixed = sum(f.width for f in fragments if f.visible and not f.shortenable)
    count = len(shortenable)
    remaining = width - fixed - (count + _SLACK)
    if remaining <= len(ELLIPSIS):
        return
    allowed = max(1, (remaining - len(ELLIPSIS)) // count)
    for index in shortenable:
        fragment = fragments[index]
        if len(fragment.text) <= allowed:
            continue
        keep = allowed - 1 if fragment.kind is FragmentKind.IMAGE else allowed
        candidate = fragment.ellipsized(keep)
        if len(candidate) <= len(fragment.text):
            fragments[index] = replace(fragment, shortened_alt=candidate)


def _trim_longest(fragments: List[GrammarFragment], shortenable: List[int], width: int) -> None:
    while True:
        overflow = _total(fragments) - width
        if overflow <= 0:
            return
        candidates = [i for i in shortenable if len(fragments[i].body) > MIN_BODY]
        if not candidates:
            return
        index = max(candidates, key=lambda i: (len(fragments[i].body), -fragments[i].position))
        fragment = fragments[index]
        target = max(MIN_BODY, len(fragment.body) - overflow)
        fragments[index] = replace(fragment, shortened_alt=fragment.ellipsized(target - len(ELLIPSIS)))


def format_fragments(fragments: Sequence[GrammarFragment], width: int) -> List[GrammarFragment]:
    """Return copies of ``fragments`` shortened to fit ``width`` columns.

    The budget is first split evenly across the visible shortenable
    fragments; if the prompt still overflows, the longest remaining body
    (earliest position on ties) is cut by exactly the overflow, repeatedly,
    down to :data:`MIN_BODY`. When nothing can shrink further the prompt is
    returned at its minimum width rather than dropping mandatory text.
    """
    ordered = [replace(f, shortened_alt=None) for f in sorted(fragments, key=lambda f: f.position)]
    if _total(ordered) <= width:
        return ordered

    shortenable = [i for i, f in enumerate(ordered) if f.visible and f.shortenable]
    if not shortenable:
        return ordered

    _even_split(ordered, shortenable, width)
    _trim_longest(ordered, shortenable, width)
    return ordered


def render_fragments(fragments: Sequence[GrammarFragment]) -> str:
    ordered = sorted(fragments, key=lambda f: f.position)
    return "".join(f"{f.prefix}{f.body}{f.suffix}" for f in ordered if f.visible)


def minimum_width(fragments: Sequence[GrammarFragment]) -> int:
    """Narrowest width :func:`format_fragments` can reach for ``fragments``."""
    total = 0
    for fragment in fragments:
        if not fragment.visible:
            continue
        body = len(fragment.text)
        if fragment.shortenable:
            body = min(body, MIN_BODY)
        total += len(fragment.prefix) + body + len(fragment.suffix)
    return total


__all__ = [
    "ELLIPSIS",
    "FragmentKind",
    "GrammarFragment",
    "MIN_BODY",
    "format_fragments",
    "minimum_width",
    "render_fragments",
]

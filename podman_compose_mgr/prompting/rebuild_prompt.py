"""The ``Refresh <image> from <dir>? p/N/d/b/s/?:`` prompt."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .grammar import FragmentKind, GrammarFragment

DEFAULT_CHOICE = "N"
AUTO_CHOICE = "b"

REBUILD_CHOICES: Tuple[Tuple[str, str], ...] = (
    ("p", "Pull image from upstream."),
    ("N", "Do nothing, skip this image."),
    ("d", "Display info (image name, compose/unit path, upstream create date, on-disk modify date)."),
    ("b", "Build image from the Dockerfile or Makefile next to the compose/unit file."),
    ("s", "Skip all subsequent images with this same name (regardless of container name)."),
    ("?", "Display this help."),
)


def build_rebuild_fragments(
    image: str, container: Optional[str], entry_path: Path
) -> List[GrammarFragment]:
    fragments = [
        GrammarFragment("Refresh", FragmentKind.VERBIAGE, position=0, suffix=" "),
        GrammarFragment(image, FragmentKind.IMAGE, position=1, suffix=" ", shortenable=True),
        GrammarFragment("from", FragmentKind.VERBIAGE, position=2, suffix=" "),
        GrammarFragment(
            str(entry_path.parent),
            FragmentKind.COMPOSE_PATH,
            position=3,
            suffix="? ",
            shortenable=True,
        ),
        GrammarFragment(
            container or "",
            FragmentKind.CONTAINER_NAME,
            position=4,
            shortenable=True,
            visible=False,
        ),
    ]
    last = len(REBUILD_CHOICES) - 1
    for offset, (letter, _) in enumerate(REBUILD_CHOICES):
        fragments.append(
            GrammarFragment(
                letter,
                FragmentKind.USER_CHOICE,
                position=5 + offset,
                suffix=": " if offset == last else "/",
                is_default=letter == DEFAULT_CHOICE,
            )
        )
    return fragments


def resolve_choice(raw: str, choices: Sequence[Tuple[str, str]] = REBUILD_CHOICES) -> str:
    """Map typed input onto a choice letter; blank or unknown input means the default."""
    answer = raw.strip()
    for letter, _ in choices:
        if answer.lower() == letter.lower():
            return letter
    return DEFAULT_CHOICE


def choice_help(choices: Sequence[Tuple[str, str]] = REBUILD_CHOICES) -> List[str]:
    return [f"{letter} = {description}" for letter, description in choices]


__all__ = [
    "AUTO_CHOICE",
    "DEFAULT_CHOICE",
    "REBUILD_CHOICES",
    "build_rebuild_fragments",
    "choice_help",
    "resolve_choice",
]

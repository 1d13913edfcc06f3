"""Regex search over rebuild output."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Pattern, Sequence


class SearchDirection(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True)
class SearchMatch:
    line: int
    start: int
    end: int


def normalize_line(text: str) -> str:
    """What a terminal would show: text after the last carriage return, tabs expanded."""
    if "\r" in text:
        text = text.rsplit("\r", 1)[-1]
    return text.replace("\t", "    ")


@dataclass
class SearchState:
    query: str = ""
    direction: SearchDirection = SearchDirection.FORWARD
    editing: bool = True
    pattern: Optional[Pattern[str]] = None
    matches: List[SearchMatch] = field(default_factory=list)
    line_lookup: Dict[int, List[int]] = field(default_factory=dict)
    active: Optional[int] = None
    error: Optional[str] = None
    version: int = -1
    first_line: int = 0

    def compile(self) -> bool:
        """Compile ``query``; an invalid pattern clears matches and records the error."""
        self.pattern = None
        self.error = None
        if not self.query:
            return False
        try:
            self.pattern = re.compile(self.query)
        except re.error as exc:
            self.error = f"Invalid pattern: {exc}"
            return False
        return True

    def recompute(self, lines: Sequence[str], baseline: int, version: int = -1) -> None:
        """Rebuild the match list, keeping the previous selection when it still exists.

        ``version`` counts every line ever appended to the output, so lines
        evicted from the front since the last call shift the previous
        selection up before it is looked up again.

        Without a surviving selection a forward search picks the first hit at
        or after ``baseline`` (wrapping to the first hit), a backward search
        the last hit at or before it (wrapping to the last hit).
        """
        previous = self.active_match
        first_line = max(0, version - len(lines)) if version >= 0 else 0
        evicted = first_line - self.first_line if self.version >= 0 and version >= 0 else 0
        self.matches = []
        self.line_lookup = {}
        self.active = None
        self.version = version
        self.first_line = first_line
        if self.pattern is None:
            return

        for line_no, raw in enumerate(lines):
            text = normalize_line(raw)
            for found in self.pattern.finditer(text):
                if found.end() == found.start():
                    continue
                self.line_lookup.setdefault(line_no, []).append(len(self.matches))
                self.matches.append(SearchMatch(line_no, found.start(), found.end()))

        if not self.matches:
            return
        if previous is not None:
            kept = SearchMatch(previous.line - evicted, previous.start, previous.end)
            if kept in self.matches:
                self.active = self.matches.index(kept)
                return
        if self.direction is SearchDirection.FORWARD:
            self.active = next(
                (i for i, match in enumerate(self.matches) if match.line >= baseline), 0
            )
        else:
            candidates = [i for i, match in enumerate(self.matches) if match.line <= baseline]
            self.active = candidates[-1] if candidates else len(self.matches) - 1

    @property
    def active_match(self) -> Optional[SearchMatch]:
        if self.active is None or not self.matches:
            return None
        return self.matches[self.active]

    def advance_next(self) -> Optional[SearchMatch]:
        if not self.matches:
            return None
        self.active = 0 if self.active is None else (self.active + 1) % len(self.matches)
        return self.active_match

    def advance_prev(self) -> Optional[SearchMatch]:
        if not self.matches:
            return None
        self.active = (
            len(self.matches) - 1 if self.active is None else (self.active - 1) % len(self.matches)
        )
        return self.active_match

    def matches_on_line(self, line: int) -> List[SearchMatch]:
        return [self.matches[i] for i in self.line_lookup.get(line, [])]

    def status(self) -> str:
        if self.error:
            return self.error
        if self.pattern is None:
            return ""
        if not self.matches:
            return f"Pattern not found: {self.query}"
        return f"Match {(self.active or 0) + 1}/{len(self.matches)}"


__all__ = ["SearchDirection", "SearchMatch", "SearchState", "normalize_line"]

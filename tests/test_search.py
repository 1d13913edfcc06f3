"""Tests for podman_compose_mgr.tui.search."""

from __future__ import annotations

from podman_compose_mgr.tui.search import SearchDirection, SearchMatch, SearchState, normalize_line

LINES = ["alpha", "beta error", "gamma", "error again error", "omega"]


def _search(query: str, direction: SearchDirection = SearchDirection.FORWARD) -> SearchState:
    search = SearchState(query=query, direction=direction)
    search.compile()
    return search


def test_forward_search_picks_first_match_at_or_after_baseline() -> None:
    search = _search("error")

    search.recompute(LINES, baseline=2)

    assert len(search.matches) == 3
    assert search.active_match == SearchMatch(3, 0, 5)
    assert search.status() == "Match 2/3"


def test_backward_search_picks_last_match_at_or_before_baseline() -> None:
    search = _search("error", SearchDirection.BACKWARD)

    search.recompute(LINES, baseline=2)

    assert search.active_match == SearchMatch(1, 5, 10)


def test_forward_search_wraps_when_nothing_below() -> None:
    search = _search("beta")

    search.recompute(LINES, baseline=4)

    assert search.active_match == SearchMatch(1, 0, 4)


def test_navigation_wraps_both_ways() -> None:
    search = _search("error")
    search.recompute(LINES, baseline=0)

    assert search.active_match == SearchMatch(1, 5, 10)
    assert search.advance_prev() == SearchMatch(3, 12, 17)
    assert search.advance_next() == SearchMatch(1, 5, 10)
    assert search.advance_next() == SearchMatch(3, 0, 5)


def test_recompute_keeps_existing_selection() -> None:
    search = _search("error")
    search.recompute(LINES, baseline=0)
    search.advance_next()

    search.recompute(LINES + ["more error"], baseline=0)

    assert search.active_match == SearchMatch(3, 0, 5)
    assert len(search.matches) == 4


def test_invalid_pattern_reports_error() -> None:
    search = SearchState(query="(")

    assert search.compile() is False
    search.recompute(LINES, baseline=0)

    assert search.matches == []
    assert search.status().startswith("Invalid pattern")


def test_empty_matches_are_ignored() -> None:
    search = _search("x*")

    search.recompute(["abc", "xx"], baseline=0)

    assert search.matches == [SearchMatch(1, 0, 2)]


def test_not_found_status() -> None:
    search = _search("zzz")
    search.recompute(LINES, baseline=0)

    assert search.status() == "Pattern not found: zzz"
    assert search.advance_next() is None


def test_normalize_line_keeps_text_after_last_carriage_return() -> None:
    assert normalize_line("10%\r50%\r100%") == "100%"
    assert normalize_line("a\tb") == "a    b"


def test_lines_on_lookup() -> None:
    search = _search("error")
    search.recompute(LINES, baseline=0)

    assert search.matches_on_line(3) == [SearchMatch(3, 0, 5), SearchMatch(3, 12, 17)]
    assert search.matches_on_line(0) == []


def test_selection_follows_its_line_when_oldest_lines_are_evicted() -> None:
    search = _search("err")
    search.recompute(["x err", "y err", "z err"], baseline=0, version=3)
    search.advance_next()
    assert search.active_match == SearchMatch(1, 2, 5)

    search.recompute(["y err", "z err", "w err"], baseline=0, version=4)

    assert search.active_match == SearchMatch(0, 2, 5)


def test_selection_evicted_with_its_line_falls_back_to_baseline() -> None:
    search = _search("err")
    search.recompute(["x err", "y", "z err"], baseline=0, version=3)
    assert search.active_match == SearchMatch(0, 2, 5)

    search.recompute(["y", "z err", "w"], baseline=0, version=4)

    assert search.active_match == SearchMatch(1, 2, 5)

"""Translate key names into messages according to the current model."""

from __future__ import annotations

from typing import Dict, Optional

from . import messages as m
from .search import SearchDirection
from .state import ExportLogModal, Model, UiState, ViewPickerModal, WorkQueueModal

INTERRUPT_KEY = "ctrl-c"

_VIEW_PICKER_KEYS: Dict[str, object] = {
    "up": m.ViewPickerUp(),
    "k": m.ViewPickerUp(),
    "down": m.ViewPickerDown(),
    "j": m.ViewPickerDown(),
    "enter": m.ViewPickerAccept(),
    "esc": m.CloseModal(),
    "q": m.CloseModal(),
    "v": m.CloseModal(),
}

_WORK_QUEUE_KEYS: Dict[str, object] = {
    "up": m.WorkQueueUp(),
    "k": m.WorkQueueUp(),
    "down": m.WorkQueueDown(),
    "j": m.WorkQueueDown(),
    "enter": m.WorkQueueSelect(),
    "esc": m.CloseModal(),
    "q": m.CloseModal(),
    "w": m.CloseModal(),
}

_REBUILD_KEYS: Dict[str, object] = {
    "up": m.ScrollUp(),
    "k": m.ScrollUp(),
    "down": m.ScrollDown(),
    "j": m.ScrollDown(),
    "pageup": m.ScrollPageUp(),
    "b": m.ScrollPageUp(),
    "pagedown": m.ScrollPageDown(),
    " ": m.ScrollPageDown(),
    "f": m.ScrollPageDown(),
    "left": m.ScrollLeft(),
    "h": m.ScrollLeft(),
    "right": m.ScrollRight(),
    "l": m.ScrollRight(),
    "g": m.ScrollTop(),
    "home": m.ScrollTop(),
    "G": m.ScrollBottom(),
    "end": m.ScrollBottom(),
    "/": m.SearchStart(SearchDirection.FORWARD),
    "?": m.SearchStart(SearchDirection.BACKWARD),
    "n": m.SearchNext(),
    "N": m.SearchPrev(),
    "w": m.OpenWorkQueue(),
    "e": m.OpenExportLog(),
    "q": m.Quit(),
}

_READY_KEYS: Dict[str, object] = {
    "q": m.Quit(),
    "esc": m.Quit(),
    "up": m.MoveUp(),
    "k": m.MoveUp(),
    "down": m.MoveDown(),
    "j": m.MoveDown(),
    "pageup": m.PageUp(),
    "b": m.PageUp(),
    "pagedown": m.PageDown(),
    "f": m.PageDown(),
    " ": m.ToggleCheck(),
    "x": m.ToggleCheck(),
    "enter": m.ToggleCheck(),
    "a": m.ToggleCheckAll(),
    "right": m.ExpandOrEnter(),
    "l": m.ExpandOrEnter(),
    "left": m.CollapseOrBack(),
    "h": m.CollapseOrBack(),
    "v": m.OpenViewPicker(),
    "r": m.StartRebuild(),
}

_SCANNING_KEYS: Dict[str, object] = {"q": m.Quit(), "esc": m.Quit()}


def _is_text(key: str) -> bool:
    return len(key) == 1 and key.isprintable()


def _text_entry(key: str, submit: object, cancel: object, backspace: object, factory) -> Optional[object]:
    if key == "enter":
        return submit
    if key == "esc":
        return cancel
    if key == "backspace":
        return backspace
    if _is_text(key):
        return factory(key)
    return None


def map_key(model: Model, key: str) -> Optional[object]:
    """Return the message for ``key`` or ``None`` when it means nothing here."""
    if key == INTERRUPT_KEY:
        return m.Interrupt()

    modal = model.modal
    if isinstance(modal, ViewPickerModal):
        return _VIEW_PICKER_KEYS.get(key)
    if isinstance(modal, WorkQueueModal):
        return _WORK_QUEUE_KEYS.get(key)
    if isinstance(modal, ExportLogModal):
        return _text_entry(key, m.ExportSubmit(), m.CloseModal(), m.ExportBackspace(), m.ExportInput)

    if model.state is UiState.REBUILDING:
        search = model.rebuild.search if model.rebuild is not None else None
        if search is not None and search.editing:
            return _text_entry(key, m.SearchSubmit(), m.SearchCancel(), m.SearchBackspace(), m.SearchInput)
        if key == "esc":
            return m.SearchCancel() if search is not None else m.ExitRebuild()
        return _REBUILD_KEYS.get(key)

    if model.state is UiState.READY:
        return _READY_KEYS.get(key)

    return _SCANNING_KEYS.get(key)


__all__ = ["INTERRUPT_KEY", "map_key"]

from __future__ import annotations

from contextlib import contextmanager
from PySide6.QtCore import QSettings


@contextmanager
def blocked_signals(obj):
    """
    Temporarily silence Qt signals of `obj`; always re-enables them.
    """
    if obj is None:
        yield
        return
    try:
        obj.blockSignals(True)
        yield
    finally:
        try:
            obj.blockSignals(False)
        except RuntimeError:
            # the C++ object may already be gone
            pass


def safe_set_setting(settings: QSettings, key: str, value) -> None:
    """Best-effort QSettings write; never breaks the UI."""
    try:
        settings.setValue(key, value)
    except Exception:
        pass


def utf16_to_index(text: str, pos: int) -> int:
    """Qt cursor position (UTF-16 code units) -> Python str index."""
    if pos <= 0:
        return 0
    units = 0
    for i, ch in enumerate(text):
        if units >= pos:
            return i
        units += 2 if ord(ch) > 0xFFFF else 1
    return len(text)


def index_to_utf16(text: str, index: int) -> int:
    """Python str index -> Qt cursor position (UTF-16 code units)."""
    head = text[: max(0, index)]
    return len(head) + sum(1 for ch in head if ord(ch) > 0xFFFF)

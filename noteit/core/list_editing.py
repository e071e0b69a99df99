from __future__ import annotations

import re
from dataclasses import dataclass

TASK_OPEN = "- [ ] "
TASK_DONE = "- [x] "
BULLET = "- "

_EMPTY_MARKERS = {"-", "- [ ]", "- [x]"}
_BARE_NUMBER_RE = re.compile(r"^[0-9]+\.$")
_NUMBER_PREFIX_RE = re.compile(r"^([0-9]+)\.\s")

PLACEHOLDER = "text"


@dataclass(frozen=True)
class Edit:
    """
    Replace text[start:end] with `text`.
    `selection` (start, end) is where the caret/selection should land
    afterwards; None leaves it right after the inserted text.
    """
    start: int
    end: int
    text: str
    selection: tuple[int, int] | None = None

    def apply(self, buffer: str) -> str:
        return buffer[: self.start] + self.text + buffer[self.end:]


def clamp(text: str, position: int) -> int:
    return max(0, min(int(position), len(text)))


def line_bounds(text: str, position: int) -> tuple[int, int]:
    """(start, end) of the line containing `position`; end excludes the newline."""
    position = clamp(text, position)
    start = text.rfind("\n", 0, position) + 1
    end = text.find("\n", position)
    if end == -1:
        end = len(text)
    return start, end


def _leading_indent(line: str) -> str:
    return line[: len(line) - len(line.lstrip(" \t"))]


def on_enter(text: str, position: int, anchor: int | None = None) -> Edit | None:
    """
    Enter-key list continuation for the line holding the selection start.

    Returns None when the host widget should insert its plain newline.
    """
    position = clamp(text, position)
    anchor = position if anchor is None else clamp(text, anchor)
    sel_start, sel_end = min(position, anchor), max(position, anchor)

    start, end = line_bounds(text, sel_start)
    line = text[start:end]
    trimmed = line.strip()
    indent = _leading_indent(line)

    if trimmed in _EMPTY_MARKERS or _BARE_NUMBER_RE.match(trimmed):
        # ends the list: the empty marker line is cleared
        line_end = end + 1 if end < len(text) else end
        return Edit(start, line_end, "\n")

    if trimmed.startswith(TASK_OPEN) or trimmed.startswith(TASK_DONE):
        prefix = f"{indent}{TASK_OPEN}"
    elif trimmed.startswith(BULLET):
        prefix = f"{indent}{BULLET}"
    else:
        m = _NUMBER_PREFIX_RE.match(trimmed)
        if not m:
            return None
        prefix = f"{indent}{int(m.group(1)) + 1}. "

    return Edit(sel_start, sel_end, f"\n{prefix}")


def wrap_selection(text: str, start: int, end: int, marker: str) -> Edit:
    start, end = sorted((clamp(text, start), clamp(text, end)))
    if end > start:
        return Edit(start, end, f"{marker}{text[start:end]}{marker}")
    sel = start + len(marker)
    return Edit(
        start, start, f"{marker}{PLACEHOLDER}{marker}",
        selection=(sel, sel + len(PLACEHOLDER)),
    )


def insert_at_line_start(text: str, position: int, prefix: str) -> Edit:
    # No check for an existing prefix: repeated calls stack.
    start, _ = line_bounds(text, position)
    return Edit(start, start, prefix)


def insert_text(text: str, start: int, end: int, snippet: str) -> Edit:
    start, end = sorted((clamp(text, start), clamp(text, end)))
    return Edit(start, end, snippet)


def toggle_checkbox(text: str, position: int) -> Edit | None:
    """Flip "- [ ] " <-> "- [x] " on the line holding `position`."""
    if not text:
        return None
    start, end = line_bounds(text, position)
    line = text[start:end]
    trimmed = line.strip()

    if trimmed.startswith(TASK_OPEN):
        new_line = line.replace(TASK_OPEN, TASK_DONE, 1)
    elif trimmed.startswith(TASK_DONE):
        new_line = line.replace(TASK_DONE, TASK_OPEN, 1)
    else:
        return None
    return Edit(start, end, new_line)

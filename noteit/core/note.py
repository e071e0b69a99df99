from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable

UNTITLED = "Untitled"

_HEADING_RE = re.compile(r"^#+\s*")


def note_title(content: str) -> str:
    """First line without its heading marker, or "Untitled"."""
    first_line = content.split("\n", 1)[0].strip()
    cleaned = _HEADING_RE.sub("", first_line, count=1)
    return cleaned or UNTITLED


def note_preview(content: str) -> str:
    """Second non-empty line, trimmed; "" when there is none."""
    lines = [ln for ln in content.split("\n") if ln]
    if len(lines) > 1:
        return lines[1].strip()
    return ""


@dataclass(frozen=True)
class Note:
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    content: str = ""
    modified_at: datetime = field(default_factory=datetime.now)

    @property
    def title(self) -> str:
        return note_title(self.content)

    @property
    def preview(self) -> str:
        return note_preview(self.content)

    @property
    def word_count(self) -> int:
        return len(self.content.split())

    def edited(self, content: str) -> "Note":
        return replace(self, content=content, modified_at=datetime.now())


def filter_notes(notes: Iterable[Note], query: str) -> list[Note]:
    """
    Linear case-insensitive substring match over title and content.
    Blank query keeps everything; order is preserved.
    """
    q = (query or "").strip().casefold()
    if not q:
        return list(notes)
    return [
        n for n in notes
        if q in n.title.casefold() or q in n.content.casefold()
    ]


def retitle(content: str, new_title: str) -> str:
    """
    Replace the first line with `new_title`, keeping its heading depth
    ("## Old" -> "## New"); plain first lines become "# New".
    """
    first, sep, rest = content.partition("\n")
    stripped = first.strip()
    if stripped.startswith("#"):
        hashes = stripped[: len(stripped) - len(stripped.lstrip("#"))]
        prefix = f"{hashes} "
    else:
        prefix = "# "
    return f"{prefix}{new_title.strip()}{sep}{rest}"

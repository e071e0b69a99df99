from __future__ import annotations

import os
import uuid
from datetime import datetime
from pathlib import Path


def atomic_write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """
    Atomic file write:
      - write to a hidden temp file in the same directory
      - fsync
      - replace() into the final path
    Readers see either the old or the new content, never a partial file.
    """
    path = Path(path)
    tmp_path = path.parent / f".{path.name}.tmp-{uuid.uuid4().hex}"

    try:
        with open(tmp_path, "w", encoding=encoding, newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    finally:
        try:
            if tmp_path.exists():
                tmp_path.unlink()
        except OSError:
            pass


def read_text_verbatim(path: Path, *, encoding: str = "utf-8") -> str:
    """Decode the file as-is (no newline translation). Raises UnicodeDecodeError."""
    return Path(path).read_bytes().decode(encoding)


def modified_time(path: Path) -> datetime:
    return datetime.fromtimestamp(Path(path).stat().st_mtime)

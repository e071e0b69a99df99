from __future__ import annotations
from pathlib import Path

APP_NAME = "noteit"
ORG_NAME = "NoteIt"
LOG_DIR = Path.home() / f".{APP_NAME}" / "logs"
LOG_PATH = LOG_DIR / f"{APP_NAME}.log"

DEFAULT_NOTES_DIR = Path.home() / "Documents" / "NoteIt"
NOTE_EXTENSION = ".md"
NEW_NOTE_CONTENT = "# "

SAVE_DEBOUNCE_MS = 500

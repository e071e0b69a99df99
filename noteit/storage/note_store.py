from __future__ import annotations

import re
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from PySide6.QtCore import QObject, Qt, QTimer, Signal

from noteit.core.note import Note
from noteit.logging_setup import log, note_log
from noteit.settings import NEW_NOTE_CONTENT, NOTE_EXTENSION, SAVE_DEBOUNCE_MS
from noteit.storage.filesystem import atomic_write_text, modified_time, read_text_verbatim

_UUID_STEM_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def parse_note_id(stem: str) -> Optional[uuid.UUID]:
    if not _UUID_STEM_RE.match(stem or ""):
        return None
    try:
        return uuid.UUID(stem)
    except ValueError:
        return None


def note_filename(note_id: uuid.UUID) -> str:
    return f"{str(note_id).upper()}{NOTE_EXTENSION}"


class NoteStore(QObject):
    """
    Source of truth for the note collection and its files:
      notes_dir/<UUID>.md, one per note.

    Edits are coalesced per note by a single-shot QTimer; only the last
    content of a burst reaches the disk. Must be used from the thread that
    owns it (the GUI thread); timers fire on that thread too.
    """

    notesChanged = Signal()
    noteSaved = Signal(str)  # note_id; content changed in memory
    writeFailed = Signal(str, str)  # note_id, message

    def __init__(
        self,
        notes_dir: Path,
        *,
        debounce_ms: int = SAVE_DEBOUNCE_MS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.notes_dir = Path(notes_dir)
        self.debounce_ms = int(debounce_ms)

        self._notes: List[Note] = []
        self._paths: Dict[uuid.UUID, Path] = {}
        self._save_timers: Dict[uuid.UUID, QTimer] = {}
        self._pending: Dict[uuid.UUID, Note] = {}
        self._owner_thread = threading.get_ident()

        self._ensure_directory()

    # ───────────────────────── read side ─────────────────────────

    @property
    def notes(self) -> tuple[Note, ...]:
        return tuple(self._notes)

    def get(self, note_id: uuid.UUID) -> Optional[Note]:
        for n in self._notes:
            if n.id == note_id:
                return n
        return None

    def path_for(self, note_id: uuid.UUID) -> Path:
        return self._paths.get(note_id) or self.notes_dir / note_filename(note_id)

    def pending_ids(self) -> set[uuid.UUID]:
        return set(self._save_timers)

    # ───────────────────────── mutations ─────────────────────────

    def load_all(self) -> list[Note]:
        self._require_owner_thread()
        # a reload must see the newest content, not what the timers still hold
        self.flush()

        try:
            entries = list(self.notes_dir.iterdir())
        except OSError:
            log.exception("Failed to list notes directory: %s", self.notes_dir)
            return list(self._notes)

        loaded: list[Note] = []
        paths: Dict[uuid.UUID, Path] = {}
        for path in entries:
            if path.name.startswith(".") or path.suffix != NOTE_EXTENSION:
                continue
            if not path.is_file():
                continue

            note_id = parse_note_id(path.stem)
            if note_id is None:
                log.warning("Skipping file with invalid note id name: %s", path.name)
                continue
            if note_id in paths:
                log.warning("Skipping duplicate note file: %s (already have %s)", path.name, paths[note_id].name)
                continue

            try:
                content = read_text_verbatim(path)
            except (OSError, UnicodeDecodeError) as e:
                log.warning("Failed to read note file: %s (%s)", path.name, e)
                continue

            try:
                modified = modified_time(path)
            except OSError:
                modified = datetime.now()

            loaded.append(Note(id=note_id, content=content, modified_at=modified))
            paths[note_id] = path

        loaded.sort(key=lambda n: n.modified_at, reverse=True)
        self._notes = loaded
        self._paths = paths
        log.info("Notes loaded: count=%d dir=%s", len(loaded), self.notes_dir)
        self.notesChanged.emit()
        return list(loaded)

    def create(self) -> Note:
        self._require_owner_thread()
        note = Note(content=NEW_NOTE_CONTENT)
        self._notes.insert(0, note)
        self._paths[note.id] = self.notes_dir / note_filename(note.id)
        note_log(note.id).info("Note created")
        self._write(note)
        self.notesChanged.emit()
        return note

    def save(self, note: Note) -> None:
        self._require_owner_thread()
        for i, n in enumerate(self._notes):
            if n.id == note.id:
                self._notes[i] = note
                break
        self._schedule_write(note)
        # membership and order are unchanged; only this note's row needs a repaint
        self.noteSaved.emit(str(note.id))

    def delete(self, note: Note) -> None:
        self._require_owner_thread()
        self._cancel_write(note.id)
        self._notes = [n for n in self._notes if n.id != note.id]
        path = self._paths.pop(note.id, None) or self.notes_dir / note_filename(note.id)
        try:
            path.unlink(missing_ok=True)
            note_log(note.id).info("Note deleted")
        except OSError:
            note_log(note.id).exception("Failed to delete note file: %s", path)
        self.notesChanged.emit()

    def flush(self) -> None:
        """Write every pending note now. Used on shutdown."""
        self._require_owner_thread()
        if not self._save_timers:
            return
        log.info("Flushing pending writes: count=%d", len(self._save_timers))
        for note_id in list(self._save_timers):
            note = self._pending.get(note_id)
            self._cancel_write(note_id)
            if note is not None:
                self._write(note)

    # ───────────────────────── debounce ─────────────────────────

    def _schedule_write(self, note: Note) -> None:
        self._pending[note.id] = note
        timer = self._save_timers.get(note.id)
        if timer is None:
            timer = QTimer(self)
            timer.setSingleShot(True)
            # coarse timers may fire early; a write must never precede the delay
            timer.setTimerType(Qt.TimerType.PreciseTimer)
            timer.setInterval(self.debounce_ms)
            note_id = note.id
            timer.timeout.connect(lambda: self._on_save_timeout(note_id, timer))
            self._save_timers[note.id] = timer
        # restart: a burst keeps pushing the deadline back
        timer.start()

    def _cancel_write(self, note_id: uuid.UUID) -> None:
        timer = self._save_timers.pop(note_id, None)
        self._pending.pop(note_id, None)
        if timer is not None:
            timer.stop()
            timer.deleteLater()

    def _on_save_timeout(self, note_id: uuid.UUID, timer: QTimer) -> None:
        if self._save_timers.get(note_id) is not timer:
            note_log(note_id).debug("Stale save timer ignored")
            return
        note = self._pending.get(note_id)
        self._cancel_write(note_id)
        if note is not None:
            self._write(note)

    # ───────────────────────── io ─────────────────────────

    def _write(self, note: Note) -> None:
        path = self.path_for(note.id)
        try:
            atomic_write_text(path, note.content, encoding="utf-8")
        except (OSError, UnicodeError) as e:
            # unencodable text (lone surrogates) fails the same way a full disk does
            note_log(note.id).exception("Failed to save note: %s", path)
            self.writeFailed.emit(str(note.id), str(e))
            return
        note_log(note.id).debug("Note written: chars=%d", len(note.content))

    def _ensure_directory(self) -> None:
        try:
            self.notes_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            log.exception("Failed to create notes directory: %s", self.notes_dir)

    def _require_owner_thread(self) -> None:
        if threading.get_ident() != self._owner_thread:
            raise RuntimeError("NoteStore must be used from the thread that owns it")

from __future__ import annotations

import uuid

from PySide6.QtCore import Qt, QSettings, Slot
from PySide6.QtGui import QAction, QKeySequence, QTextCursor
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QListWidget, QListWidgetItem, QLineEdit, QSplitter, QToolBar,
    QMessageBox, QInputDialog,
)

from noteit.config import AppearanceSettings, SettingsKeys, editor_font
from noteit.core.note import Note, UNTITLED, filter_notes, retitle
from noteit.logging_setup import log
from noteit.qt_utils import blocked_signals, safe_set_setting
from noteit.storage.note_store import NoteStore
from noteit.ui.editor import CODE_BLOCK_SNIPPET, LINK_SNIPPET, MarkdownEditor


def apply_theme(app: QApplication, theme: str) -> None:
    """Follow system / force light / force dark. Needs Qt >= 6.8 to force; otherwise no-op."""
    hints = app.styleHints()
    if not hasattr(hints, "setColorScheme"):
        return
    scheme = {
        "light": Qt.ColorScheme.Light,
        "dark": Qt.ColorScheme.Dark,
    }.get(theme, Qt.ColorScheme.Unknown)
    try:
        hints.setColorScheme(scheme)
    except Exception:
        log.exception("Failed to apply theme: %s", theme)


def _describe(item: QListWidgetItem, note: Note) -> None:
    item.setText(f"{note.title}\n{note.preview}" if note.preview else note.title)
    item.setToolTip(f"{note.word_count} words")


class NotesWindow(QMainWindow):
    def __init__(self, store: NoteStore, settings: QSettings):
        super().__init__()
        self.setWindowTitle("NoteIt")
        self.store = store
        self.settings = settings
        self.current: Note | None = None

        self.search = QLineEdit()
        self.search.setPlaceholderText("Search notes...")
        self.search.setClearButtonEnabled(True)
        self.listw = QListWidget()
        self.editor = MarkdownEditor()

        left = QWidget()
        left_layout = QVBoxLayout(left)
        left_layout.setContentsMargins(8, 8, 8, 8)
        left_layout.addWidget(self.search)
        left_layout.addWidget(self.listw)

        self.splitter = QSplitter(Qt.Orientation.Horizontal)
        self.splitter.addWidget(left)
        self.splitter.addWidget(self.editor)
        self.splitter.setStretchFactor(0, 1)
        self.splitter.setStretchFactor(1, 3)

        root = QWidget()
        root_layout = QHBoxLayout(root)
        root_layout.setContentsMargins(0, 0, 0, 0)
        root_layout.addWidget(self.splitter)
        self.setCentralWidget(root)

        self._build_actions()

        self.appearance = AppearanceSettings.load(settings)
        self.editor.setFont(editor_font(self.appearance))
        self.editor.setEnabled(False)

        self.search.textChanged.connect(self.refresh_list)
        self.listw.itemSelectionChanged.connect(self._on_select_note)
        self.editor.textChanged.connect(self._on_text_changed)
        self.store.notesChanged.connect(self.refresh_list)
        self.store.noteSaved.connect(self._update_item)
        self.store.writeFailed.connect(self._on_write_failed)

        geo = settings.value(SettingsKeys.UI_GEOMETRY)
        if geo:
            self.restoreGeometry(geo)
        else:
            self.resize(1000, 680)

        self.store.load_all()

    def _build_actions(self) -> None:
        filem = self.menuBar().addMenu("File")

        act_new = QAction("New Note", self)
        act_new.setShortcut(QKeySequence.StandardKey.New)
        act_new.triggered.connect(self.new_note)

        act_rename = QAction("Rename…", self)
        act_rename.triggered.connect(self.rename_current_note)

        act_delete = QAction("Delete Note", self)
        act_delete.triggered.connect(self.delete_current_note)

        filem.addAction(act_new)
        filem.addAction(act_rename)
        filem.addSeparator()
        filem.addAction(act_delete)

        tb = QToolBar("Format", self)
        tb.setMovable(False)
        self.addToolBar(tb)

        def add(label: str, handler, shortcut: str | None = None) -> None:
            act = QAction(label, self)
            if shortcut:
                act.setShortcut(shortcut)
            act.triggered.connect(handler)
            tb.addAction(act)

        add("B", lambda: self.editor.wrap_selection("**"), "Ctrl+B")
        add("I", lambda: self.editor.wrap_selection("*"), "Ctrl+I")
        add("S", lambda: self.editor.wrap_selection("~~"))
        tb.addSeparator()
        add("H1", lambda: self.editor.insert_at_line_start("# "))
        add("H2", lambda: self.editor.insert_at_line_start("## "))
        add("H3", lambda: self.editor.insert_at_line_start("### "))
        tb.addSeparator()
        add("•", lambda: self.editor.insert_at_line_start("- "))
        add("1.", lambda: self.editor.insert_at_line_start("1. "))
        add("☐", lambda: self.editor.insert_at_line_start("- [ ] "))
        add("✓", self.editor.toggle_current_checkbox, "Ctrl+Return")
        tb.addSeparator()
        add("</>", lambda: self.editor.insert_at_cursor(CODE_BLOCK_SNIPPET))
        add("Link", lambda: self.editor.insert_at_cursor(LINK_SNIPPET))

    # ───────────────────────── list ─────────────────────────

    @Slot()
    def refresh_list(self) -> None:
        notes = filter_notes(self.store.notes, self.search.text())
        current_id = self.current.id if self.current else None

        with blocked_signals(self.listw):
            self.listw.clear()
            for note in notes:
                item = QListWidgetItem()
                item.setData(Qt.ItemDataRole.UserRole, str(note.id))
                _describe(item, note)
                self.listw.addItem(item)
                if note.id == current_id:
                    self.listw.setCurrentItem(item)

    @Slot(str)
    def _update_item(self, note_id: str) -> None:
        """Repaint one row after an edit; the rest of the list is untouched."""
        note = self.store.get(uuid.UUID(note_id))
        if note is None:
            return
        for i in range(self.listw.count()):
            item = self.listw.item(i)
            if item.data(Qt.ItemDataRole.UserRole) == note_id:
                _describe(item, note)
                return

    def _on_select_note(self) -> None:
        items = self.listw.selectedItems()
        if not items:
            return
        note = self.store.get(uuid.UUID(items[0].data(Qt.ItemDataRole.UserRole)))
        if note is not None:
            self.open_note(note)

    def open_note(self, note: Note) -> None:
        self.current = note
        self.editor.setEnabled(True)
        self.editor.set_markdown(note.content)
        log.debug("Note opened: %s", note.id)

    # ───────────────────────── editing ─────────────────────────

    def _on_text_changed(self) -> None:
        if self.current is None:
            return
        self.current = self.current.edited(self.editor.markdown())
        self.store.save(self.current)

    def new_note(self) -> None:
        with blocked_signals(self.search):
            self.search.clear()
        note = self.store.create()
        self.open_note(note)
        self.refresh_list()
        self.editor.moveCursor(QTextCursor.MoveOperation.End)
        self.editor.setFocus()

    def rename_current_note(self) -> None:
        if self.current is None:
            return
        title = "" if self.current.title == UNTITLED else self.current.title
        new_title, ok = QInputDialog.getText(self, "Rename", "Note title", text=title)
        if not ok or not new_title.strip():
            return
        note = self.current.edited(retitle(self.current.content, new_title))
        self.current = note
        self.editor.set_markdown(note.content)
        self.store.save(note)

    def delete_current_note(self) -> None:
        if self.current is None:
            return
        answer = QMessageBox.question(
            self, "Delete Note",
            "Are you sure you want to delete this note? This action cannot be undone.",
        )
        if answer != QMessageBox.StandardButton.Yes:
            return
        note, self.current = self.current, None
        self.editor.set_markdown("")
        self.editor.setEnabled(False)
        self.store.delete(note)

    @Slot(str, str)
    def _on_write_failed(self, note_id: str, message: str) -> None:
        self.statusBar().showMessage(f"Could not save note: {message}", 8000)

    def closeEvent(self, event):  # type: ignore[override]
        """Persist edits still waiting on the debounce timer."""
        try:
            self.store.flush()
        except Exception:
            log.exception("Failed to flush notes on close")
        safe_set_setting(self.settings, SettingsKeys.UI_GEOMETRY, self.saveGeometry())
        super().closeEvent(event)

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QTextCursor
from PySide6.QtWidgets import QTextEdit

from noteit.core import list_editing as rules
from noteit.core.list_editing import Edit
from noteit.qt_utils import blocked_signals, index_to_utf16, utf16_to_index

CODE_BLOCK_SNIPPET = "\n```\ncode\n```\n"
LINK_SNIPPET = "[title](url)"


class MarkdownEditor(QTextEdit):
    """
    Plain-text Markdown editor: Enter continues lists, a click on a task line
    toggles its checkbox. All text decisions live in core.list_editing; this
    class only translates between Qt cursors and string offsets.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setAcceptRichText(False)
        self.setTabChangesFocus(False)

    # ───────────────────────── content ─────────────────────────

    def markdown(self) -> str:
        return self.toPlainText()

    def set_markdown(self, text: str) -> None:
        """Programmatic replacement; emits no textChanged."""
        with blocked_signals(self):
            self.setPlainText(text)

    def _selection(self) -> tuple[str, int, int]:
        text = self.toPlainText()
        cursor = self.textCursor()
        return (
            text,
            utf16_to_index(text, cursor.selectionStart()),
            utf16_to_index(text, cursor.selectionEnd()),
        )

    def apply_edit(self, edit: Edit | None) -> bool:
        if edit is None:
            return False
        text = self.toPlainText()
        new_text = edit.apply(text)

        cursor = self.textCursor()
        cursor.beginEditBlock()
        cursor.setPosition(index_to_utf16(text, edit.start))
        cursor.setPosition(index_to_utf16(text, edit.end), QTextCursor.MoveMode.KeepAnchor)
        cursor.insertText(edit.text)
        cursor.endEditBlock()

        if edit.selection is not None:
            sel_start, sel_end = edit.selection
            cursor.setPosition(index_to_utf16(new_text, sel_start))
            cursor.setPosition(index_to_utf16(new_text, sel_end), QTextCursor.MoveMode.KeepAnchor)
        self.setTextCursor(cursor)
        return True

    # ───────────────────────── toolbar actions ─────────────────────────

    def wrap_selection(self, marker: str) -> None:
        text, start, end = self._selection()
        self.apply_edit(rules.wrap_selection(text, start, end, marker))

    def insert_at_line_start(self, prefix: str) -> None:
        text, start, _ = self._selection()
        self.apply_edit(rules.insert_at_line_start(text, start, prefix))

    def insert_at_cursor(self, snippet: str) -> None:
        text, start, end = self._selection()
        self.apply_edit(rules.insert_text(text, start, end, snippet))

    def toggle_current_checkbox(self) -> bool:
        text, start, _ = self._selection()
        return self.apply_edit(rules.toggle_checkbox(text, start))

    def toggle_checkbox_at(self, point) -> bool:
        text = self.toPlainText()
        pos = utf16_to_index(text, self.cursorForPosition(point).position())
        return self.apply_edit(rules.toggle_checkbox(text, pos))

    # ───────────────────────── events ─────────────────────────

    def keyPressEvent(self, event):  # type: ignore[override]
        meaningful_modifiers = event.modifiers() & ~Qt.KeyboardModifier.KeypadModifier
        if event.key() in (Qt.Key.Key_Return, Qt.Key.Key_Enter) and not meaningful_modifiers:
            text, start, end = self._selection()
            if self.apply_edit(rules.on_enter(text, start, end)):
                event.accept()
                return
        super().keyPressEvent(event)

    def mouseReleaseEvent(self, event):  # type: ignore[override]
        super().mouseReleaseEvent(event)
        if event.button() != Qt.MouseButton.LeftButton:
            return
        if self.textCursor().hasSelection():
            return
        self.toggle_checkbox_at(event.position().toPoint())

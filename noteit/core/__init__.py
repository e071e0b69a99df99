from .note import Note, note_title, note_preview, filter_notes, retitle
from .list_editing import Edit, on_enter, wrap_selection, insert_at_line_start, insert_text, toggle_checkbox

__all__ = ["Note",
           "note_title",
           "note_preview",
           "filter_notes",
           "retitle",
           "Edit",
           "on_enter",
           "wrap_selection",
           "insert_at_line_start",
           "insert_text",
           "toggle_checkbox",
           ]

from .core.note import Note, filter_notes, retitle
from .core.list_editing import Edit
from .storage.note_store import NoteStore

__all__ = ["Note",
           "filter_notes",
           "retitle",
           "Edit",
           "NoteStore",
           ]

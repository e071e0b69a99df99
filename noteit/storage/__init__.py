from .filesystem import atomic_write_text
from .note_store import NoteStore

__all__ = ["atomic_write_text", "NoteStore"]

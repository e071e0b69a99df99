import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtWidgets import QApplication

from noteit.storage.note_store import NoteStore


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def notes_dir(tmp_path):
    return tmp_path / "notes"


@pytest.fixture
def store(qapp, notes_dir):
    s = NoteStore(notes_dir, debounce_ms=100)
    yield s
    s.flush()

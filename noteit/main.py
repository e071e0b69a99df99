from __future__ import annotations

import sys

from PySide6.QtCore import QSettings
from PySide6.QtWidgets import QApplication

from noteit.config import AppearanceSettings, notes_dir
from noteit.logging_setup import SESSION_ID, install_global_exception_hooks, log, setup_logging
from noteit.settings import APP_NAME, ORG_NAME
from noteit.storage.note_store import NoteStore
from noteit.ui.main_window import NotesWindow, apply_theme


def main() -> int:
    setup_logging()
    install_global_exception_hooks()

    app = QApplication(sys.argv)
    app.setOrganizationName(ORG_NAME)
    app.setApplicationName(APP_NAME)

    settings = QSettings()
    apply_theme(app, AppearanceSettings.load(settings).theme)

    store = NoteStore(notes_dir(settings))
    app.aboutToQuit.connect(store.flush)

    win = NotesWindow(store, settings)
    win.show()
    log.info("Application started, SID=%s notes_dir=%s", SESSION_ID, store.notes_dir)
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

import logging
import sys
import uuid
from logging.handlers import RotatingFileHandler

from noteit.settings import APP_NAME, LOG_DIR, LOG_PATH

SESSION_ID = uuid.uuid4().hex[:8]
NO_NOTE = "-"

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | note=%(note)s | %(message)s | sid=%(session)s"


class EnsureContextFilter(logging.Filter):
    """Give every record `session` and `note` so the format string always resolves."""
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session"):
            record.session = SESSION_ID
        if not hasattr(record, "note"):
            record.note = NO_NOTE
        return True


class NoteContextAdapter(logging.LoggerAdapter):
    """
    Tags records with the session id and, when bound to one, the note id.

    log.info(...)                  -> note=-
    note_log(note.id).info(...)    -> note=<uuid>
    """
    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra.setdefault("session", SESSION_ID)
        extra.setdefault("note", self.extra.get("note", NO_NOTE))
        return msg, kwargs


def setup_logging() -> logging.Logger:
    """
    Attach the rotating file log (debug and up) and the console (info and up)
    to the `noteit` logger. Calling again is a no-op.
    """
    logger = logging.getLogger(APP_NAME)
    logger.setLevel(logging.DEBUG)

    if logger.handlers:
        return logger

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger.propagate = False

    fmt = logging.Formatter(LOG_FORMAT)
    context = EnsureContextFilter()

    for handler, level in (
        (RotatingFileHandler(LOG_PATH, maxBytes=2 * 1024 * 1024, backupCount=5, encoding="utf-8"), logging.DEBUG),
        (logging.StreamHandler(sys.stdout or sys.stderr), logging.INFO),
    ):
        handler.setLevel(level)
        handler.setFormatter(fmt)
        handler.addFilter(context)
        logger.addHandler(handler)

    logger.info("Logging initialized. log_file=%s", LOG_PATH)
    return logger


log = NoteContextAdapter(logging.getLogger(APP_NAME), {})


def note_log(note_id) -> NoteContextAdapter:
    """Logger bound to one note; store events carry its id in the `note` field."""
    return NoteContextAdapter(log.logger, {"note": str(note_id)})


def qt_log_level(mode) -> int:
    from PySide6.QtCore import QtMsgType

    return {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }.get(mode, logging.WARNING)


def install_global_exception_hooks() -> None:
    def _excepthook(exc_type, exc, tb):
        log.critical("Uncaught exception", exc_info=(exc_type, exc, tb))
        sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = _excepthook

    try:
        from PySide6.QtCore import qInstallMessageHandler

        def _qt_message_handler(mode, context, message):
            file = getattr(context, "file", None)
            line = getattr(context, "line", None)
            where = f"{file}:{line}" if file else "unknown"
            log.log(qt_log_level(mode), "Qt: %s | where=%s", message, where)

        qInstallMessageHandler(_qt_message_handler)
        log.info("Qt message handler installed")
    except Exception:
        log.exception("Failed to install Qt message handler")

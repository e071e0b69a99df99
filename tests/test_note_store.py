import logging
import os
import threading
import time
import uuid

import pytest
from PySide6.QtTest import QTest

from noteit.core.note import Note
from noteit.storage import note_store as note_store_module
from noteit.storage.note_store import NoteStore, note_filename, parse_note_id


@pytest.fixture
def writes(monkeypatch):
    """Record every disk write the store performs, still writing for real."""
    calls = []
    real = note_store_module.atomic_write_text

    def recording(path, text, **kwargs):
        calls.append((path, text))
        real(path, text, **kwargs)

    monkeypatch.setattr(note_store_module, "atomic_write_text", recording)
    return calls


def read(path):
    return path.read_bytes().decode("utf-8")


def test_directory_is_created(qapp, notes_dir):
    NoteStore(notes_dir)
    assert notes_dir.is_dir()


def test_create_is_written_immediately_and_goes_first(store):
    first = store.create()
    second = store.create()

    assert [n.id for n in store.notes] == [second.id, first.id]
    assert second.content == "# "
    path = store.path_for(second.id)
    assert path.name == f"{str(second.id).upper()}.md"
    assert read(path) == "# "
    assert store.pending_ids() == set()


def test_save_updates_memory_now_and_disk_later(store, writes):
    note = store.create()
    writes.clear()

    edited = note.edited("# Hello")
    store.save(edited)

    assert store.get(note.id).content == "# Hello"
    assert writes == []
    assert store.pending_ids() == {note.id}

    QTest.qWait(300)
    assert read(store.path_for(note.id)) == "# Hello"
    assert store.pending_ids() == set()


def test_burst_of_saves_writes_once_with_last_content(qapp, notes_dir, writes):
    store = NoteStore(notes_dir, debounce_ms=400)
    note = store.create()
    writes.clear()

    for i in range(5):
        note = note.edited(f"# v{i}")
        store.save(note)
        QTest.qWait(20)

    QTest.qWait(50)
    assert writes == []

    QTest.qWait(1000)
    assert len(writes) == 1
    assert writes[0][1] == "# v4"
    assert read(store.path_for(note.id)) == "# v4"


def test_write_never_lands_before_the_delay(qapp, notes_dir, monkeypatch):
    store = NoteStore(notes_dir, debounce_ms=500)
    note = store.create()
    real = note_store_module.atomic_write_text
    written_at = []

    def stamped(path, text, **kwargs):
        written_at.append(time.perf_counter())
        real(path, text, **kwargs)

    monkeypatch.setattr(note_store_module, "atomic_write_text", stamped)

    for i in range(4):
        written_at.clear()
        saved_at = time.perf_counter()
        store.save(note.edited(f"# v{i}"))
        QTest.qWait(800)

        assert len(written_at) == 1
        assert (written_at[0] - saved_at) * 1000 >= 500


def test_save_signals_the_note_not_the_collection(store):
    note = store.create()
    changed, saved = [], []
    store.notesChanged.connect(lambda: changed.append(True))
    store.noteSaved.connect(saved.append)

    store.save(note.edited("# typed"))
    store.save(note.edited("# typed more"))

    assert changed == []
    assert saved == [str(note.id), str(note.id)]


def test_save_then_delete_cancels_write(store, writes):
    note = store.create()
    writes.clear()

    store.save(note.edited("# doomed"))
    store.delete(note)
    QTest.qWait(300)

    assert writes == []
    assert not store.path_for(note.id).exists()
    assert store.get(note.id) is None
    assert store.pending_ids() == set()


def test_delete_missing_file_is_not_an_error(store, caplog):
    note = store.create()
    store.path_for(note.id).unlink()

    with caplog.at_level(logging.ERROR, logger="noteit"):
        store.delete(note)

    assert store.notes == ()
    assert not caplog.records


def test_timers_are_independent_per_note(store, writes):
    a = store.create()
    b = store.create()
    writes.clear()

    store.save(a.edited("# a"))
    store.save(b.edited("# b"))
    QTest.qWait(300)

    assert sorted(text for _, text in writes) == ["# a", "# b"]


def test_flush_writes_pending_now(store, writes):
    note = store.create()
    writes.clear()

    store.save(note.edited("# last words"))
    store.flush()

    assert len(writes) == 1
    assert read(store.path_for(note.id)) == "# last words"
    assert store.pending_ids() == set()

    QTest.qWait(300)
    assert len(writes) == 1


def test_save_keeps_position(store):
    a = store.create()
    b = store.create()
    store.save(a.edited("# edited"))
    assert [n.id for n in store.notes] == [b.id, a.id]


def test_save_of_unknown_note_does_not_add_it(store, writes):
    stray = Note(content="# stray")
    store.save(stray)
    assert store.get(stray.id) is None
    QTest.qWait(300)
    assert len(writes) == 1


def test_load_all_round_trip_and_order(qapp, notes_dir):
    s1 = NoteStore(notes_dir, debounce_ms=50)
    older = s1.create()
    newer = s1.create()
    s1.save(older.edited("# Older\r\nwith CRLF\n"))
    s1.save(newer.edited("# Newer\nbody"))
    s1.flush()

    now = time.time()
    os.utime(s1.path_for(older.id), (now - 100, now - 100))
    os.utime(s1.path_for(newer.id), (now, now))

    s2 = NoteStore(notes_dir)
    loaded = s2.load_all()

    assert [n.id for n in loaded] == [newer.id, older.id]
    assert loaded[1].content == "# Older\r\nwith CRLF\n"
    assert loaded[0].title == "Newer"
    assert s2.notes == tuple(loaded)


def test_load_all_skips_foreign_files(qapp, notes_dir, caplog):
    notes_dir.mkdir(parents=True)
    good = uuid.uuid4()
    (notes_dir / note_filename(good)).write_text("# ok", encoding="utf-8")
    (notes_dir / "not-a-uuid.md").write_text("# nope", encoding="utf-8")
    (notes_dir / f"{uuid.uuid4()}.txt").write_text("# wrong ext", encoding="utf-8")
    (notes_dir / f".{uuid.uuid4()}.md").write_text("# hidden", encoding="utf-8")
    (notes_dir / f"{uuid.uuid4()}.md").write_bytes(b"\xff\xfe\xfa broken")

    with caplog.at_level(logging.WARNING, logger="noteit"):
        loaded = NoteStore(notes_dir).load_all()

    assert [n.id for n in loaded] == [good]
    messages = " ".join(r.getMessage() for r in caplog.records)
    assert "not-a-uuid.md" in messages
    assert "Failed to read note file" in messages


def test_lowercase_file_name_is_kept_on_save(qapp, notes_dir):
    notes_dir.mkdir(parents=True)
    note_id = uuid.uuid4()
    path = notes_dir / f"{str(note_id).lower()}.md"
    path.write_text("# lower", encoding="utf-8")

    store = NoteStore(notes_dir, debounce_ms=50)
    (note,) = store.load_all()
    store.save(note.edited("# still lower"))
    store.flush()

    assert [p.name for p in notes_dir.iterdir()] == [path.name]
    assert read(path) == "# still lower"


def test_load_all_flushes_pending_first(store):
    note = store.create()
    store.save(note.edited("# pending"))
    loaded = store.load_all()
    assert [n.content for n in loaded] == ["# pending"]


def test_write_failure_is_logged_and_signalled(store, monkeypatch, caplog):
    note = store.create()
    failures = []
    store.writeFailed.connect(lambda nid, msg: failures.append((nid, msg)))

    def boom(path, text, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(note_store_module, "atomic_write_text", boom)
    with caplog.at_level(logging.ERROR, logger="noteit"):
        store.save(note.edited("# lost"))
        store.flush()

    assert failures == [(str(note.id), "disk full")]
    assert store.get(note.id).content == "# lost"
    assert any("Failed to save note" in r.getMessage() for r in caplog.records)


def test_unencodable_content_fails_that_note_only(store, caplog):
    bad = store.create()
    good = store.create()
    failures = []
    store.writeFailed.connect(lambda nid, msg: failures.append(nid))

    # a lone surrogate can reach a str from the clipboard but has no UTF-8 form
    store.save(bad.edited("# bad \ud800"))
    store.save(good.edited("# good"))
    with caplog.at_level(logging.ERROR, logger="noteit"):
        store.flush()

    assert failures == [str(bad.id)]
    assert read(store.path_for(good.id)) == "# good"
    assert read(store.path_for(bad.id)) == "# "
    assert store.pending_ids() == set()
    assert not [p for p in store.notes_dir.iterdir() if p.name.startswith(".")]
    assert any("Failed to save note" in r.getMessage() for r in caplog.records)


def test_unusable_directory_degrades(qapp, tmp_path, caplog):
    blocker = tmp_path / "file-not-dir"
    blocker.write_text("x", encoding="utf-8")

    with caplog.at_level(logging.ERROR, logger="noteit"):
        store = NoteStore(blocker)
        assert store.load_all() == []

    messages = " ".join(r.getMessage() for r in caplog.records)
    assert "Failed to create notes directory" in messages
    assert "Failed to list notes directory" in messages


def test_mutation_from_other_thread_is_rejected(store):
    note = store.create()
    errors = []

    def worker():
        try:
            store.save(note.edited("# from thread"))
        except RuntimeError as e:
            errors.append(e)

    t = threading.Thread(target=worker)
    t.start()
    t.join()

    assert len(errors) == 1
    assert store.get(note.id).content == "# "


def test_parse_note_id():
    nid = uuid.uuid4()
    assert parse_note_id(str(nid).upper()) == nid
    assert parse_note_id(str(nid)) == nid
    assert parse_note_id(nid.hex) is None
    assert parse_note_id("{%s}" % nid) is None
    assert parse_note_id("") is None

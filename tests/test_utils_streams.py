import threading

import pytest

from hades.utils import streams
from hades.utils.streams import RollingFileStream


def test_write_and_end(tmp_path):
    path = tmp_path / "nested" / "app.log"
    stream = RollingFileStream(path, 0, 1)
    assert stream.write("hello\n") is True
    closed = []
    stream.end(lambda: closed.append(True))
    assert closed == [True]
    assert path.read_text(encoding="utf-8") == "hello\n"


def test_write_after_end_raises(tmp_path):
    stream = RollingFileStream(tmp_path / "app.log", 0, 1)
    stream.end()
    with pytest.raises(ValueError):
        stream.write("late\n")


def test_rollover_keeps_backup_count(tmp_path):
    path = tmp_path / "app.log"
    stream = RollingFileStream(path, 100, 2)
    for i in range(50):
        stream.write(f"line {i:03d} ..........\n")
    stream.end()

    files = sorted(tmp_path.glob("app.log*"))
    assert path in files
    assert (tmp_path / "app.log.1").exists()
    assert (tmp_path / "app.log.2").exists()
    assert not (tmp_path / "app.log.3").exists()
    assert all(f.stat().st_size <= 100 for f in files)
    assert "line 049" in path.read_text(encoding="utf-8")


def test_high_water_mark_and_drain(tmp_path):
    drained = []
    stream = RollingFileStream(tmp_path / "app.log", 0, 1, high_water_mark=1, on_drain=lambda: drained.append(True))
    assert stream.write("x\n") is False
    stream.end()
    assert drained == [True]


def test_flush_waits_for_writer(tmp_path):
    path = tmp_path / "app.log"
    stream = RollingFileStream(path, 0, 1)
    for i in range(20):
        stream.write(f"{i}\n")
    assert stream.flush(timeout=5)
    assert path.read_text(encoding="utf-8").splitlines()[-1] == "19"
    stream.end()


def test_full_buffer_drops_and_reports(tmp_path, monkeypatch):
    gate = threading.Event()
    monkeypatch.setattr(streams._RollingHandler, "emit", lambda self, record: gate.wait())
    errors = []
    stream = RollingFileStream(tmp_path / "app.log", 0, 1, high_water_mark=1, max_buffer=1, on_error=errors.append)

    assert stream.write("a\n") is False
    assert stream.write("b\n") is False
    assert stream.write("c\n") is False
    assert stream.dropped == 2

    gate.set()
    stream.end()
    assert len(errors) == 1
    assert isinstance(errors[0], BufferError)


def test_io_errors_are_reported(tmp_path):
    target = tmp_path / "taken"
    target.mkdir()
    errors = []
    stream = RollingFileStream(target, 0, 1, on_error=errors.append)
    stream.write("lost\n")
    stream.end()
    assert errors
    assert isinstance(errors[0], OSError)

import io

import pytest

from conftest import TIME_TEXT, make_event
from hades.formatting import STACK_HEADER, UpdateMarker, format_log
from hades.sinks.base import AppenderConfig
from hades.sinks.console import ConsoleSink


@pytest.fixture
def console(translate):
    out, err = io.StringIO(), io.StringIO()
    sink = ConsoleSink(AppenderConfig(handle=format_log, translate=translate, is_highlight=False), stream=out, error_stream=err)
    yield sink, out, err
    sink.close()


def test_plain_line(console):
    sink, out, err = console
    sink.emit(make_event("sys", "load"))
    assert out.getvalue() == f"[{TIME_TEXT}][info] sys >  load\n"
    assert err.getvalue() == ""


def test_stack_goes_to_error_stream(console):
    sink, out, err = console
    sink.emit(make_event("db", "query", ValueError("boom")))
    assert out.getvalue() == f"[{TIME_TEXT}][info] db >  query  boom\n"
    assert STACK_HEADER in err.getvalue()
    assert "ValueError: boom" in err.getvalue()


def test_update_then_done(console):
    sink, out, err = console
    sink.emit(make_event("import", "rows", "10%", marker=UpdateMarker.UPDATE))
    assert sink.live.active
    sink.emit(make_event("import", "rows", "50%", marker=UpdateMarker.UPDATE))
    sink.emit(make_event("import", "rows", "100%", marker=UpdateMarker.DONE))
    assert not sink.live.active

    text = out.getvalue()
    assert "\r" in text
    assert "import >  rows  50%" in text
    assert text.rstrip("\n").endswith("import >  rows  100%")
    assert text.endswith("\n")


def test_plain_line_after_done_starts_new_line(console):
    sink, out, err = console
    sink.emit(make_event("import", "rows", "1", marker=UpdateMarker.UPDATE))
    sink.emit(make_event("import", "rows", "2", marker=UpdateMarker.DONE))
    sink.emit(make_event("sys", "next"))
    assert out.getvalue().endswith(f"\n[{TIME_TEXT}][info] sys >  next\n")


def test_update_with_error_still_reports_stack(console):
    sink, out, err = console
    sink.emit(make_event("job", "step", RuntimeError("bad"), marker=UpdateMarker.UPDATE))
    assert "RuntimeError: bad" in err.getvalue()

import io
from datetime import datetime

import pytest

from hades.formatting import LogEvent
from hades.levels import LEVELS
from hades.utils.i18n import Translator

EVENT_TIME = datetime(2024, 1, 2, 3, 4, 5, 678000)
TIME_TEXT = "24-01-02 03:04:05:678"


def make_event(*fields, level="info", marker=None):
    return LogEvent(timestamp=EVENT_TIME, level=LEVELS[level], fields=fields, marker=marker)


@pytest.fixture
def translate():
    return Translator("en")


@pytest.fixture
def streams():
    return io.StringIO(), io.StringIO()


@pytest.fixture
def make_hades(streams):
    """Build Hades instances writing to in-memory streams; shut them down afterwards."""
    from hades import Hades

    created = []
    out, err = streams

    def _make(*args, **kwargs):
        kwargs.setdefault("use_highlighting", False)
        kwargs.setdefault("announce_init", False)
        kwargs.setdefault("stream", out)
        kwargs.setdefault("error_stream", err)
        log = Hades(*args, **kwargs)
        created.append(log)
        return log

    yield _make
    for log in created:
        log.shutdown()

import pytest
from loguru import logger

from hades.levels import LEVELS, resolve_threshold, setup_engine


def test_resolve_threshold():
    assert resolve_threshold(None) == 0
    assert resolve_threshold("all") == 0
    assert resolve_threshold("OFF") > LEVELS["mark"].no
    assert resolve_threshold("warn") == 30
    assert resolve_threshold("warning") == 30
    assert resolve_threshold("critical") == LEVELS["fatal"].no
    assert resolve_threshold(7) == 7


def test_resolve_threshold_unknown():
    with pytest.raises(ValueError):
        resolve_threshold("verbose")


def test_levels_are_ordered():
    numbers = [level.no for level in LEVELS.values()]
    assert numbers == sorted(numbers)


def test_setup_engine_registers_custom_levels():
    setup_engine()
    setup_engine()
    assert logger.level("FATAL").no == LEVELS["fatal"].no
    assert logger.level("MARK").no == LEVELS["mark"].no

import pathlib

import pytest

from hades.config.settings import Settings, load_settings, parse_flags
from hades.hades import HadesConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ["NAME", "LEVEL", "DIR", "MAX_FILE_SIZE", "BACKUP_COUNT", "LOCALE", "TIME_FORMAT", "FLAGS"]:
        monkeypatch.delenv(f"HADES_{var}", raising=False)


def test_settings_locale_dir_exists():
    settings = load_settings()
    assert (settings.locale_dir / "en.json").exists()
    assert (settings.locale_dir / "zh.json").exists()


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("HADES_LEVEL", "warn")
    monkeypatch.setenv("HADES_DIR", "/tmp/hades-logs")
    monkeypatch.setenv("HADES_MAX_FILE_SIZE", "1024")
    settings = load_settings()
    assert settings.level == "warn"
    assert settings.dir == pathlib.Path("/tmp/hades-logs")
    assert settings.max_file_size == 1024


def test_parse_flags():
    assert parse_flags("Highlight, !AnnounceInit,unknown,!OutputDirLog") == {
        "use_highlighting": True,
        "announce_init": False,
        "announce_dir": False,
    }
    assert parse_flags("init_immediately,!InitImmediate") == {"init_immediately": False}
    assert parse_flags("") == {}
    assert parse_flags(None) == {}


def test_defaults():
    config = HadesConfig.resolve({})
    assert config == HadesConfig()
    assert config.name == "default"
    assert config.level == "all"
    assert config.log_dir is None
    assert config.backup_count == 5


def test_explicit_over_environment_over_default(monkeypatch):
    monkeypatch.setenv("HADES_NAME", "from-env")
    monkeypatch.setenv("HADES_LOCALE", "zh")
    monkeypatch.setenv("HADES_FLAGS", "!Highlight,ColorizeFiles")

    config = HadesConfig.resolve({"name": "explicit", "colorize_files": False, "level": None})
    assert config.name == "explicit"
    assert config.locale == "zh"
    assert config.use_highlighting is False
    assert config.colorize_files is False
    assert config.level == "all"


def test_log_dir_is_a_path():
    config = HadesConfig.resolve({"log_dir": "logs"}, Settings())
    assert config.log_dir == pathlib.Path("logs")


def test_config_is_immutable():
    config = HadesConfig()
    with pytest.raises(AttributeError):
        config.name = "other"

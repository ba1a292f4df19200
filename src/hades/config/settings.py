"""Environment-aware defaults for Hades loggers.

This module defines a `Settings` class (pydantic `BaseSettings`) that reads
the `HADES_` environment variables consulted when a `Hades` facade is
constructed without explicit options, plus the parser for the combined
`HADES_FLAGS` variable.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

# Flag token -> HadesConfig field. Older spellings are kept as aliases.
FLAG_FIELDS = {
    "highlight": "use_highlighting",
    "colortext": "use_highlighting",
    "announceinit": "announce_init",
    "outputinited": "announce_init",
    "announcedir": "announce_dir",
    "outputdirlog": "announce_dir",
    "initimmediately": "init_immediately",
    "initimmediate": "init_immediately",
    "colorizefiles": "colorize_files",
}


class Settings(BaseSettings):
    """Top-level pydantic Settings container for Hades defaults.

    Every field may be overridden through an environment variable using the
    `HADES_` prefix, e.g. `HADES_LEVEL=info` or `HADES_FLAGS=Highlight,!AnnounceInit`.
    """

    name: str | None = None
    level: str | None = None
    dir: Path | None = None
    max_file_size: int | None = None
    backup_count: int | None = None
    locale: str | None = None
    time_format: str | None = None
    # Comma separated `Flag` / `!Flag` tokens, see FLAG_FIELDS
    flags: str = ""

    # Locale templates shipped with the package
    locale_dir: Path = Path(__file__).parent / "locale"

    model_config = ConfigDict(env_prefix="HADES_")


def parse_flags(raw: str | None) -> dict[str, bool]:
    """Parse a `HADES_FLAGS` value into HadesConfig overrides.

    Args:
        raw (str | None): Comma separated tokens; a leading `!` negates a flag.

    Returns:
        dict[str, bool]: Mapping of config field name to flag value. Unknown
            tokens are ignored, later tokens win.

    """
    parsed: dict[str, bool] = {}
    for token in (raw or "").split(","):
        token = token.strip()
        if not token:
            continue
        value = not token.startswith("!")
        field = FLAG_FIELDS.get(token.lstrip("!").strip().replace("_", "").lower())
        if field is not None:
            parsed[field] = value
    return parsed


def load_settings() -> Settings:
    """Read the current environment into a fresh `Settings` instance."""
    return Settings()

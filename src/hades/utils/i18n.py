"""Locale lookup for level labels and fixed log phrases.

Templates live as JSON files in `settings.locale_dir` (one file per locale)
and are addressed with dotted keys such as `level.info`. Placeholders use
`str.format` syntax with two extra format specs understood by the highlighter:
`{name:term}` renders `~[name]` and `{name:value}` renders `~{name}`.
"""

from __future__ import annotations

import functools
import json
import pathlib
import string
from typing import Any

from hades.config.settings import load_settings

DEFAULT_LOCALE = "en"


class _MarkupFormatter(string.Formatter):
    def format_field(self, value: Any, format_spec: str) -> str:
        if format_spec == "term":
            return f"~[{value}]"
        if format_spec == "value":
            return f"~{{{value}}}"
        return super().format_field(value, format_spec)


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


_formatter = _MarkupFormatter()


def supported_locales(locale_dir: pathlib.Path | None = None) -> list[str]:
    """Return the locale names that have a template file."""
    locale_dir = locale_dir or load_settings().locale_dir
    return sorted(p.stem for p in pathlib.Path(locale_dir).glob("*.json"))


@functools.lru_cache(maxsize=None)
def _load_templates(locale_dir: pathlib.Path, locale: str) -> dict[str, Any]:
    path = locale_dir / f"{locale}.json"
    if not path.exists():
        return {}
    with path.open(encoding="utf8") as fh:
        return json.load(fh)


def _lookup(templates: dict[str, Any], key: str) -> str | None:
    node: Any = templates
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


class Translator:
    """Callable translating dotted keys for one locale.

    Lookups fall back to the English templates and finally to the key itself,
    so a missing translation never raises.
    """

    def __init__(self, locale: str = DEFAULT_LOCALE, locale_dir: pathlib.Path | None = None):
        self.locale = locale or DEFAULT_LOCALE
        self.locale_dir = pathlib.Path(locale_dir or load_settings().locale_dir)

    def __call__(self, key: str, **values: Any) -> str:
        template = _lookup(_load_templates(self.locale_dir, self.locale), key)
        if template is None and self.locale != DEFAULT_LOCALE:
            template = _lookup(_load_templates(self.locale_dir, DEFAULT_LOCALE), key)
        if template is None:
            return key
        return _formatter.vformat(template, (), _KeepMissing(values))

    def __repr__(self) -> str:
        return f"Translator(locale={self.locale!r})"

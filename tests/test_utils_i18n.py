from hades.utils.i18n import Translator, supported_locales


def test_supported_locales():
    assert supported_locales() == ["en", "zh"]


def test_level_labels():
    assert Translator("en")("level.warn") == "warn"
    assert Translator("zh")("level.warn") == "警告"


def test_unknown_locale_falls_back_to_english():
    assert Translator("fr")("level.info") == "info"


def test_missing_key_returns_key():
    assert Translator("zh")("no.such.key") == "no.such.key"
    # a branch is not a template
    assert Translator("en")("level") == "level"


def test_markup_format_specs():
    T = Translator("en")
    assert T("logDir", dir="/var/log") == "✔ log dir ~{/var/log}"
    assert Translator("zh")("logDir", dir="/var/log") == "✔ 日志路径 ~{/var/log}"


def test_conversion_in_template():
    message = Translator("en")("error.invalidHandle", option="handle", handle="nope", type="str")
    assert message == "the 'handle' option must be callable, got 'nope' of type str"

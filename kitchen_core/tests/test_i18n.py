import pytest

from kitchen_core.i18n import get_localizer, language_code, load_catalogs, resolve_code


def test_language_code_takes_first_two_letters():
    assert language_code("Spanish") == "sp"
    assert language_code("English") == "en"
    assert language_code(" hindi ") == "hi"
    assert language_code("") == "en"
    assert language_code(None) == "en"


@pytest.mark.parametrize(
    "name, code",
    [
        ("English", "en"),
        ("Spanish", "es"),
        ("es", "es"),
        ("French", "fr"),
        ("German", "de"),
        ("Hindi", "hi"),
        ("Bengali", "bn"),
        ("Klingon", "en"),
    ],
)
def test_resolve_code(name, code):
    assert resolve_code(name) == code


def test_localized_text_and_substitution():
    assert get_localizer("Spanish").text("chat", "greeting").startswith("¡Hola!")
    assert get_localizer("English").text("chat", "generic", message="boom") == "AI Error: boom."
    assert get_localizer("German").text("chat", "generic", message="x") == "KI-Fehler: x."


def test_missing_key_falls_back_to_english():
    # hi 文案表没有 recipe 段
    assert get_localizer("Hindi").text("recipe", "no_ingredients_title") == "Input Error: No Ingredients"
    assert get_localizer("Spanish").text("chat", "schema", message="bad") == "Input Error: bad"


def test_unknown_key_raises():
    with pytest.raises(KeyError):
        get_localizer("English").text("chat", "does_not_exist")


def test_catalogs_are_read_only():
    catalogs = load_catalogs()
    with pytest.raises(TypeError):
        catalogs["xx"] = catalogs["en"]


def test_every_catalog_has_chat_essentials():
    for catalog in set(load_catalogs().values()):
        for key in ("greeting", "no_reply", "busy", "config", "generic", "quota_exhausted"):
            assert catalog.get("chat", key), f"{catalog.code} missing chat.{key}"

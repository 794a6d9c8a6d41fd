from pathlib import Path

import pytest

from consolebuild.errors import ValidationError
from consolebuild.options import AttributeMatch, BuilderOptions, find_attribute

ATTRIBUTES = (
    "test",
    "other-test",
    {"attr-with-value": "value", "second-value": "test-value"},
    "third-test",
    {"other-object": "other-value", "second-value": "error"},
)


def test_from_mapping_accepts_camel_case_keys() -> None:
    options = BuilderOptions.from_mapping(
        {
            "tagName": "4.0.0",
            "themeFile": "theme.css",
            "indexFile": "index.html",
            "appTitle": "Console",
            "attributes": ["narrow", {"base-uri": "https://api"}],
            "noCache": True,
            "destination": "build",
        }
    )

    assert options.tag_name == "4.0.0"
    assert options.theme_file == "theme.css"
    assert options.index_file == "index.html"
    assert options.app_title == "Console"
    assert options.attributes == ("narrow", {"base-uri": "https://api"})
    assert options.no_cache is True
    assert options.destination == Path("build")


def test_from_mapping_accepts_snake_case_keys() -> None:
    options = BuilderOptions.from_mapping({"tag_name": "4.0.0", "no_cache": False})

    assert options == BuilderOptions(tag_name="4.0.0")


def test_from_mapping_rejects_unknown_option() -> None:
    with pytest.raises(ValidationError) as excinfo:
        BuilderOptions.from_mapping({"test": "test"})

    assert excinfo.value.context["option"] == "test"
    assert excinfo.value.code == "E_VALIDATION"


def test_from_mapping_rejects_duplicate_spellings() -> None:
    with pytest.raises(ValidationError):
        BuilderOptions.from_mapping({"tagName": "4.0.0", "tag_name": "5.0.0"})


@pytest.mark.parametrize(
    ("raw", "option"),
    [
        ({"tagName": 4}, "tagName"),
        ({"noCache": "yes"}, "noCache"),
        ({"attributes": "narrow"}, "attributes"),
        ({"attributes": [1]}, "attributes"),
        ({"attributes": [{"key": 1}]}, "attributes"),
    ],
)
def test_from_mapping_rejects_wrong_types(raw: dict[str, object], option: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        BuilderOptions.from_mapping(raw)

    assert excinfo.value.context["option"] == option


def test_find_boolean_attribute() -> None:
    assert find_attribute("test", ATTRIBUTES) == AttributeMatch(name="test")
    assert find_attribute("other-test", ATTRIBUTES) == AttributeMatch(name="other-test")
    assert find_attribute("third-test", ATTRIBUTES) == AttributeMatch(name="third-test")


def test_find_attribute_with_value() -> None:
    match = find_attribute("attr-with-value", ATTRIBUTES)

    assert match is not None
    assert match.name == "attr-with-value"
    assert match.value == "value"


def test_find_attribute_returns_first_match() -> None:
    match = find_attribute("second-value", ATTRIBUTES)

    assert match is not None
    assert match.value == "test-value"


def test_find_attribute_unknown_returns_none() -> None:
    assert find_attribute("unknown", ATTRIBUTES) is None
    assert find_attribute("unknown", None) is None

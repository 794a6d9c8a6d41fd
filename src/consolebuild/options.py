"""Builder configuration record and attribute lookup."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from consolebuild.errors import ValidationError

Attribute = str | Mapping[str, str]

_STRING_FIELDS = (
    "tag_name",
    "theme_file",
    "index_file",
    "app_title",
    "api",
    "api_type",
    "api_media_type",
)
_BOOL_FIELDS = ("no_cache", "verbose")

# Keys of the original JSON configuration object.
_CAMEL_KEYS = {
    "tagName": "tag_name",
    "themeFile": "theme_file",
    "indexFile": "index_file",
    "appTitle": "app_title",
    "attributes": "attributes",
    "noCache": "no_cache",
    "destination": "destination",
    "api": "api",
    "apiType": "api_type",
    "apiMediaType": "api_media_type",
    "verbose": "verbose",
}


@dataclass(frozen=True, slots=True)
class BuilderOptions:
    """Options for a console build.

    ``tag_name``, ``theme_file``, ``index_file``, ``app_title`` and
    ``attributes`` change the build output and therefore the cache key.
    The remaining fields do not.
    """

    tag_name: str | None = None
    theme_file: str | None = None
    index_file: str | None = None
    app_title: str | None = None
    attributes: tuple[Attribute, ...] | None = None
    no_cache: bool = False
    destination: Path | None = None
    api: str | None = None
    api_type: str | None = None
    api_media_type: str | None = None
    verbose: bool = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> BuilderOptions:
        """Build options from a camelCase or snake_case mapping."""
        values: dict[str, Any] = {}
        for key, value in raw.items():
            name = _CAMEL_KEYS.get(key, key)
            if name not in _CAMEL_KEYS.values():
                raise ValidationError(
                    f"Unknown builder option `{key}`.",
                    hint="Remove the option or check its spelling.",
                    context={"operation": "from_mapping", "option": key},
                )
            if name in values:
                raise ValidationError(
                    f"Builder option `{key}` is given more than once.",
                    context={"operation": "from_mapping", "option": key},
                )
            values[name] = _coerce(name, key, value)
        return cls(**values)


@dataclass(frozen=True, slots=True)
class AttributeMatch:
    name: str
    value: str | None = None


def find_attribute(name: str, attributes: tuple[Attribute, ...] | None) -> AttributeMatch | None:
    """Return the first attribute named *name*.

    A plain string attribute is a boolean attribute and yields a match
    without a value; a mapping attribute yields its value.
    """
    if not attributes:
        return None
    for item in attributes:
        if isinstance(item, str):
            if item == name:
                return AttributeMatch(name=name)
        elif name in item:
            return AttributeMatch(name=name, value=item[name])
    return None


def _coerce(name: str, key: str, value: Any) -> Any:
    if value is None:
        return None
    if name in _STRING_FIELDS:
        if not isinstance(value, str):
            raise _type_error(key, "a string", value)
        return value
    if name in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise _type_error(key, "a boolean", value)
        return value
    if name == "destination":
        if not isinstance(value, (str, Path)):
            raise _type_error(key, "a path", value)
        return Path(value)
    return _coerce_attributes(key, value)


def _coerce_attributes(key: str, value: Any) -> tuple[Attribute, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise _type_error(key, "a list", value)
    items: list[Attribute] = []
    for item in value:
        if isinstance(item, str):
            items.append(item)
        elif isinstance(item, Mapping) and all(
            isinstance(k, str) and isinstance(v, str) for k, v in item.items()
        ):
            items.append(dict(item))
        else:
            raise ValidationError(
                "Attributes must be strings or string-to-string mappings.",
                context={"operation": "from_mapping", "option": key, "value": repr(item)},
            )
    return tuple(items)


def _type_error(key: str, expected: str, value: Any) -> ValidationError:
    return ValidationError(
        f"Builder option `{key}` must be {expected}.",
        context={
            "operation": "from_mapping",
            "option": key,
            "type": type(value).__name__,
        },
    )

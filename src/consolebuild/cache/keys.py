"""Cache key derivation."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass

from consolebuild.options import BuilderOptions


@dataclass(frozen=True, slots=True)
class KeyFragment:
    """One ``name=value`` slot of the hash material.

    ``value`` is ``None`` when the slot is omitted; ``omitted`` then says why
    (``"absent"`` or ``"unserializable"``).
    """

    name: str
    value: str | None
    omitted: str | None = None

    @property
    def present(self) -> bool:
        return self.value is not None

    def encode(self) -> bytes:
        # Lone surrogates from os.fsdecode of non-UTF-8 paths are encoded as-is.
        raw = f"{self.name}={self.value}".encode("utf-8", "surrogatepass")
        return str(len(raw)).encode("ascii") + b":" + raw


def key_fragments(options: BuilderOptions) -> tuple[KeyFragment, ...]:
    """Return the tracked fields of *options* in key order."""
    return (
        _text_fragment("tn", options.tag_name),
        _text_fragment("tf", options.theme_file),
        _text_fragment("if", options.index_file),
        _text_fragment("at", options.app_title),
        _attributes_fragment(options),
    )


def hash_material(fragments: tuple[KeyFragment, ...]) -> bytes:
    # Length-prefixed, so no value can be mistaken for a field boundary.
    return b"".join(fragment.encode() for fragment in fragments if fragment.present)


def cache_key(options: BuilderOptions) -> str:
    return hashlib.sha256(hash_material(key_fragments(options))).hexdigest()


def _text_fragment(name: str, value: str | None) -> KeyFragment:
    if not value:
        return KeyFragment(name=name, value=None, omitted="absent")
    return KeyFragment(name=name, value=value)


def _attributes_fragment(options: BuilderOptions) -> KeyFragment:
    if options.attributes is None:
        return KeyFragment(name="a", value=None, omitted="absent")
    try:
        serialized = json.dumps(
            [item if isinstance(item, str) else dict(item) for item in options.attributes],
            separators=(",", ":"),
            ensure_ascii=False,
        )
    except (TypeError, ValueError):
        return KeyFragment(name="a", value=None, omitted="unserializable")
    return KeyFragment(name="a", value=serialized)

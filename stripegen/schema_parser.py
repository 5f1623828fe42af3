"""Extract canonical property descriptors and enum literals from schema nodes.

Handles:
- type / nullable / description / $ref
- anyOf alternatives (recursively extracted)
- array items and nested object properties
- explicit enum lists
- enum literals embedded in descriptions ("Can be `a`, `b`, or `c`.")
"""

from __future__ import annotations

import json
import re
from typing import Any

from .model_types import PropertyDescriptor

SCALAR_TAGS: frozenset[str] = frozenset({"string", "integer", "number", "boolean"})

# Enumeration sentence: first literal, any number of ", `x`" continuations,
# then "or `x`." or "or null."
_ENUM_SENTENCE_RE = re.compile(
    r"Can be `([^`]+)`((?:[^,]*?, `[^`]+`)*)[^,]*?,? or (?:`([^`]+)`|null)."
)
# One ", `x`" continuation, with its leading filler
_CONTINUATION_RE = re.compile(r"[^,]*?, `([^`]+)`")
_ENUM_SENTENCE_MARKER = "Can be `"


def _literal(value: Any) -> str:
    """Enum literals are strings; other JSON scalars keep their JSON spelling."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def get_properties(node: dict[str, Any]) -> PropertyDescriptor:
    """Normalize one raw schema node. Missing keys map to defaults."""
    any_of = node.get("anyOf")
    enum_values = node.get("enum")
    items = node.get("items")
    properties = node.get("properties") or {}
    return PropertyDescriptor(
        type_tag=node.get("type"),
        nullable=bool(node.get("nullable", False)),
        description=node.get("description"),
        enum_literals=tuple(_literal(v) for v in enum_values) if enum_values is not None else None,
        alternatives=tuple(get_properties(a) for a in any_of) if any_of is not None else None,
        items=get_properties(items) if isinstance(items, dict) else None,
        ref=node.get("$ref"),
        properties={name: get_properties(sub) for name, sub in properties.items()},
        required=frozenset(node.get("required", [])),
    )


def enum_from_explicit(descriptor: PropertyDescriptor) -> tuple[str, ...] | None:
    """Return the node's explicit enum literals verbatim, if any."""
    return descriptor.enum_literals


def _continuations(text: str, pos: int, end: int) -> list[str]:
    """Literal of each continuation in text[pos:end], skipping the filler before it."""
    literals = []
    while pos < end:
        m = _CONTINUATION_RE.match(text, pos, end)
        if m is None:
            break
        literals.append(m.group(1))
        pos = m.end()
    return literals


def enum_from_description(text: str | None) -> tuple[str, ...] | None:
    """Recover enum literals from a "Can be `a`, `b`, or `c`." sentence."""
    if not text:
        return None
    m = _ENUM_SENTENCE_RE.search(text)
    if m is None:
        return None
    literals = [m.group(1), *_continuations(text, m.start(2), m.end(2))]
    if m.group(3) is not None:
        literals.append(m.group(3))
    return tuple(literals)


def looks_like_enum_description(text: str | None) -> bool:
    """True when a description starts an enumeration sentence, matched or not."""
    return bool(text and text.strip()) and _ENUM_SENTENCE_MARKER in text


def resolve_enum(descriptor: PropertyDescriptor) -> tuple[str, ...] | None:
    """Explicit enum wins; the description is consulted only without one."""
    explicit = enum_from_explicit(descriptor)
    if explicit is not None:
        return explicit
    if looks_like_enum_description(descriptor.description):
        return enum_from_description(descriptor.description)
    return None

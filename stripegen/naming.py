"""Name normalization for generated identifiers.

Two casing conventions are used:
  - UpperCamel for types, fields, enum members and service methods
  - lowerCamel for method parameters

Examples:
  to_upper_camel("payment_intent")     -> "PaymentIntent"
  to_upper_camel("issuing.card")       -> "IssuingCard"
  to_lower_camel("starting_after")     -> "startingAfter"
  escape_reserved("type")              -> "type_"
  escape_identifier("3d_secure")       -> Identifier("Numeric3dSecure", "3d_secure")
  escape_identifier("American Express") -> Identifier("AmericanExpress", "American Express")
"""

from __future__ import annotations

import keyword
import re
from typing import NamedTuple

_UPPER_SEPARATORS_RE = re.compile(r"(^|[_. -])(\w)")
_LOWER_SEPARATORS_RE = re.compile(r"[_. -](\w)")
_NON_WORD_RE = re.compile(r"\W")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Prefix for names that would otherwise start with a digit
NUMERIC_PREFIX = "Numeric"

# Fallback for names with no identifier characters at all (e.g. the "" enum literal)
EMPTY_NAME = "Empty"

# Parameter names that would shadow the generated method's own locals or builtins.
# Keywords and soft keywords are always reserved.
_RESERVED_PARAMETER_NAMES: frozenset[str] = frozenset(
    {"self", "params", "path", "models", "type", "open"}
    | set(keyword.kwlist)
    | set(keyword.softkwlist)
)


class Identifier(NamedTuple):
    """A generated identifier and, when it differs, the wire literal it stands for."""

    name: str
    literal: str | None = None


def to_upper_camel(s: str) -> str:
    """Capitalize the character after each separator and drop the separator."""
    return _UPPER_SEPARATORS_RE.sub(lambda m: m.group(2).upper(), s)


def to_lower_camel(s: str) -> str:
    """Like to_upper_camel, but the first character is lower-cased."""
    camel = _LOWER_SEPARATORS_RE.sub(lambda m: m.group(1).upper(), s)
    return camel[:1].lower() + camel[1:]


def clean(s: str) -> str:
    """Remove hyphens and spaces."""
    return s.replace("-", "").replace(" ", "")


def singularise(s: str) -> str:
    """Naive singular: drop one trailing 's'."""
    return re.sub(r"s$", "", s)


def escape_reserved(name: str) -> str:
    """Append the verbatim-identifier marker to reserved parameter names."""
    if name in _RESERVED_PARAMETER_NAMES:
        return f"{name}_"
    return name


def _cased(s: str) -> str:
    """UpperCamel with any remaining non-identifier characters removed."""
    return _NON_WORD_RE.sub("", clean(to_upper_camel(s)))


def escape_identifier(s: str) -> Identifier:
    """Turn a wire literal into a bare identifier, keeping the literal when needed."""
    if keyword.iskeyword(s):
        return Identifier(f"{s}_", s)
    if s[:1].isdigit():
        return Identifier(f"{NUMERIC_PREFIX}{_cased(s)}", s)
    if "-" in s or " " in s or s[:1].isupper():
        return Identifier(_cased(s), s)
    if _IDENTIFIER_RE.match(s):
        return Identifier(s)
    name = _cased(s)
    if not name:
        return Identifier(EMPTY_NAME, s)
    if name[0].isdigit():
        name = f"{NUMERIC_PREFIX}{name}"
    return Identifier(name, s)


def to_identifier(s: str) -> str:
    """UpperCamel identifier for a type, field or method name."""
    name = _cased(s)
    if not name:
        return EMPTY_NAME
    if name[0].isdigit():
        name = f"{NUMERIC_PREFIX}{name}"
    if keyword.iskeyword(name):
        name = f"{name}_"
    return name


def parameter_name(wire_name: str) -> str:
    """lowerCamel, reserved-safe identifier for a method parameter."""
    name = to_lower_camel(escape_reserved(_NON_WORD_RE.sub("_", wire_name)))
    if name[:1].isdigit():
        name = f"_{name}"
    return escape_reserved(name)

"""Load and parse the source API document.

Reads spec/openapi.json and exposes its schemas and paths in document order.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import SpecLoadError, UnresolvableReference

SPEC_PATH = Path(__file__).parent.parent / "spec" / "openapi.json"

_REF_TARGET_RE = re.compile(r"/([^/]+)$")


@dataclass(frozen=True)
class SchemaDocument:
    """Read-only view of one parsed document, discarded after the run."""

    schemas: dict[str, Any]
    paths: dict[str, Any]

    @classmethod
    def from_dict(cls, spec: dict[str, Any]) -> SchemaDocument:
        return cls(schemas=get_schemas(spec), paths=get_paths(spec))


def load_spec(path: Path | None = None) -> dict[str, Any]:
    """Load the API document from disk."""
    spec_file = path or SPEC_PATH
    try:
        with open(spec_file, encoding="utf-8") as f:
            spec = json.load(f)
    except OSError as exc:
        raise SpecLoadError(f"Failed to read {spec_file}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SpecLoadError(f"Failed to parse JSON in {spec_file}: {exc}") from exc
    if not isinstance(spec, dict):
        raise SpecLoadError(f"{spec_file} must contain a JSON object, got {type(spec).__name__}")
    return spec


def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the document."""
    return spec.get("paths", {})


def get_schemas(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the document."""
    return spec.get("components", {}).get("schemas", {})


def parse_ref(ref: str) -> str:
    """Return the schema name a $ref points at (the last path segment)."""
    m = _REF_TARGET_RE.search(ref)
    if m is None:
        raise UnresolvableReference(f"Unparsable reference: {ref!r}")
    return m.group(1)


def resolve_ref(schemas: dict[str, Any], ref: str, owner: str) -> str:
    """Return the target schema name of a $ref, checking it exists.

    `owner` names the schema or operation the reference appears in, for the error.
    """
    target = parse_ref(ref)
    if target not in schemas:
        raise UnresolvableReference(f"{owner}: reference {ref!r} names no schema")
    return target

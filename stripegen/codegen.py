"""Render templates and write generated output.

Takes the resolved type model and service groups and produces the
models.py and services.py modules of the output package. The first
declaration of each module opens the declaration group (it carries the
module preamble); every later one continues it.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

import jinja2

from .model_types import (
    EnumType,
    Field,
    ListRef,
    MapRef,
    NamedRef,
    NamedType,
    Operation,
    RecordType,
    ScalarRef,
    ServiceGroup,
    TaggedUnionType,
    TypeModel,
    TypeRef,
)
from .errors import UnresolvableReference
from .naming import escape_identifier

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
OUTPUT_DIR = Path(__file__).parent.parent / "generated"

_PYTHON_SCALARS: dict[str, str] = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
}

# Parameter types also cover the container tags
_PARAMETER_TYPES: dict[str, str] = {
    **_PYTHON_SCALARS,
    "array": "list[str]",
    "object": "dict[str, str]",
}

ANY_TYPE = "typing.Any"
MAP_TYPE = "dict[str, str]"
BODY_PARAMETER = "params: typing.Optional[dict[str, typing.Any]] = None"

_PATH_PLACEHOLDER_RE = re.compile(r"\{([^}]+)\}")
_METHOD_INDENT = " " * 8


def _literal(value: str) -> str:
    """Python string literal."""
    return json.dumps(value, ensure_ascii=False)


def comment(text: str, indent: str = "") -> str:
    """Turn a description into a comment block, one comment line per text line."""
    lines = text.strip().splitlines() or [""]
    return "\n".join(f"{indent}# {line}".rstrip() for line in lines)


def docstring(text: str | None) -> str:
    """Method docstring from an HTML-ish operation description ("" when empty)."""
    if not text or not text.strip():
        return ""
    body = text.replace("<p>", "").replace("</p>", "").replace("\n\n", "\n").strip()
    body = body.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if body.endswith('"'):
        body += " "
    first, *rest = [line.rstrip() for line in body.splitlines()]
    continued = [f"{_METHOD_INDENT}{line}" if line else "" for line in rest]
    return '"""' + "\n".join([first, *continued]) + '"""'


def type_annotation(ref: TypeRef, quote: bool = False) -> str:
    """Python annotation for a type reference.

    With quote=True named types are written as strings, for use outside
    postponed annotations.
    """
    if isinstance(ref, ScalarRef):
        return _PYTHON_SCALARS.get(ref.tag, ANY_TYPE)
    if isinstance(ref, NamedRef):
        return _literal(ref.name) if quote else ref.name
    if isinstance(ref, ListRef):
        return f"list[{type_annotation(ref.item, quote)}]"
    if isinstance(ref, MapRef):
        return MAP_TYPE
    raise TypeError(f"Unknown type reference: {ref!r}")


def field_annotation(field: Field) -> str:
    """Annotation for a record field, carrying default and wire alias in pydantic.Field."""
    annotation = type_annotation(field.type_ref)
    field_args = []
    if field.optional:
        annotation = f"typing.Optional[{annotation}]"
        field_args.append("default=None")
    if field.wire_name is not None:
        field_args.append(f"alias={_literal(field.wire_name)}")
    if not field_args:
        return annotation
    return f"typing.Annotated[{annotation}, pydantic.Field({', '.join(field_args)})]"


def parameter_annotation(scalar_type: str, required: bool) -> str:
    annotation = _PARAMETER_TYPES.get(scalar_type, ANY_TYPE)
    if required:
        return annotation
    return f"typing.Optional[{annotation}] = None"


def enum_members(declaration: EnumType) -> list[tuple[str, str]]:
    """(member name, literal) pairs with unique names.

    A repeated literal is emitted once. Distinct literals that escape to the
    same name get a numeric suffix: "cash-app" -> CashApp, "cash app" -> CashApp2.
    """
    members: list[tuple[str, str]] = []
    names: set[str] = set()
    seen: set[str] = set()
    for literal in declaration.literals:
        if literal in seen:
            logger.debug(f"{declaration.name}: duplicate literal {literal!r} dropped")
            continue
        seen.add(literal)
        base = escape_identifier(literal).name
        name, suffix = base, 2
        while name in names:
            name, suffix = f"{base}{suffix}", suffix + 1
        names.add(name)
        members.append((name, literal))
    return members


def _declaration_context(declaration: NamedType, opens_group: bool) -> dict[str, Any]:
    context: dict[str, Any] = {
        "name": declaration.name,
        "description": declaration.description,
        "opens_group": opens_group,
    }
    if isinstance(declaration, RecordType):
        context["kind"] = "record"
        context["fields"] = [
            {
                "name": field.name,
                "annotation": field_annotation(field),
                "description": field.description,
            }
            for field in declaration.fields
        ]
    elif isinstance(declaration, EnumType):
        context["kind"] = "enum"
        context["members"] = [
            {"name": name, "value": _literal(literal)}
            for name, literal in enum_members(declaration)
        ]
    elif isinstance(declaration, TaggedUnionType):
        context["kind"] = "union"
        context["variants"] = [
            {"annotation": type_annotation(variant.payload, quote=True), "tag": variant.tag}
            for variant in declaration.variants
        ]
    else:
        raise TypeError(f"Unknown declaration: {declaration!r}")
    return context


def build_models_context(types: TypeModel) -> dict[str, Any]:
    """Template context for models.py. Index 0 opens the declaration group."""
    return {
        "declarations": [
            _declaration_context(declaration, index == 0)
            for index, declaration in enumerate(types.declarations)
        ],
        "records": [d.name for d in types.declarations if isinstance(d, RecordType)],
    }


def _path_expression(operation: Operation) -> str:
    """Path literal, filled with URL-quoted parameters keyed by their wire names."""
    placeholders = _PATH_PLACEHOLDER_RE.findall(operation.path)
    if not placeholders:
        return _literal(operation.path)
    by_wire = {p.wire_name: p.name for p in operation.parameters}
    missing = [placeholder for placeholder in placeholders if placeholder not in by_wire]
    if missing:
        raise UnresolvableReference(
            f"{operation.name}: path {operation.path!r} has no parameter for {', '.join(missing)}"
        )
    values = ", ".join(
        f"{_literal(placeholder)}: urllib.parse.quote(str({by_wire[placeholder]}), safe=\"\")"
        for placeholder in placeholders
    )
    return f"{_literal(operation.path)}.format_map({{{values}}})"


def _operation_context(operation: Operation) -> dict[str, Any]:
    placeholders = set(_PATH_PLACEHOLDER_RE.findall(operation.path))
    signature = ["self"]
    signature.extend(
        f"{p.name}: {parameter_annotation(p.scalar_type, p.required)}"
        for p in operation.parameters
    )
    if operation.pattern.takes_body:
        signature.extend(["*", BODY_PARAMETER])

    query_params = [
        p for p in operation.parameters
        if p.location != "path" and p.wire_name not in placeholders
    ]
    query = ""
    if query_params:
        query = "{" + ", ".join(f"{_literal(p.wire_name)}: {p.name}" for p in query_params) + "}"

    response = f"models.{operation.response_type}"
    call_args = ["path"]
    if operation.pattern.takes_body:
        call_args.append("params")
    call_args.append(response)
    if query:
        call_args.append("query=query")

    return {
        "name": operation.name,
        "signature": ", ".join(signature),
        "response_type": operation.response_type,
        "docstring": docstring(operation.description),
        "path_expression": _path_expression(operation),
        "query": query,
        "call": f"{operation.pattern.value}({', '.join(call_args)})",
    }


def build_services_context(services: list[ServiceGroup]) -> dict[str, Any]:
    """Template context for services.py. Index 0 opens the declaration group."""
    return {
        "services": [
            {
                "name": service.name,
                "opens_group": index == 0,
                "operations": [_operation_context(op) for op in service.operations],
            }
            for index, service in enumerate(services)
        ],
    }


def _environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["comment"] = comment
    return env


def render_models(types: TypeModel) -> str:
    """Render the type declarations module."""
    template = _environment().get_template("models.py.j2")
    return template.render(**build_models_context(types))


def render_services(services: list[ServiceGroup]) -> str:
    """Render the service declarations module."""
    template = _environment().get_template("services.py.j2")
    return template.render(**build_services_context(services))


def generate(types: TypeModel, services: list[ServiceGroup], output_dir: Path | None = None) -> Path:
    """Render both modules and write them as a package to output_dir."""
    models_text = render_models(types)
    services_text = render_services(services)

    output_path = output_dir or OUTPUT_DIR
    output_path.mkdir(parents=True, exist_ok=True)
    (output_path / "__init__.py").write_text('"""Generated API bindings."""\n', encoding="utf-8")
    (output_path / "models.py").write_text(models_text, encoding="utf-8")
    (output_path / "services.py").write_text(services_text, encoding="utf-8")

    operation_count = sum(len(s.operations) for s in services)
    print(
        f"Generated {output_path} ({len(types.declarations)} types, "
        f"{len(services)} services, {operation_count} operations)"
    )
    return output_path

"""Build per-resource service definitions from the paths map.

A schema entry becomes a service when it carries a resource-operations
marker array; each marker with method_on == "service" links one path/verb
to a method of that service.

Method naming:
  ChargeService,   create on /v1/charges                      -> Create
  CustomerService, list   on /v1/customers                    -> List
  SourceService,   create on /v1/customers/{customer}/sources -> CreateForCustomer
"""

from __future__ import annotations

import logging
import re
from typing import Any

from .config import OPERATIONS_MARKER
from .errors import UnhandledResponseType, UnhandledVerb, UnresolvableReference
from .loader import SchemaDocument, resolve_ref
from .model_types import InvocationPattern, Operation, Parameter, ServiceGroup, TypeModel
from .naming import parameter_name, singularise, to_identifier

logger = logging.getLogger(__name__)

# First path segment after the version segment, e.g. "customers" in /v1/customers/{id}
_PATH_ROOT_RE = re.compile(r"^/v[^/]+/([^/]+)")

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"

SERVICE_SUFFIX = "Service"


def path_root(path: str) -> str:
    """Singular UpperCamel resource name a path belongs to ("" without a version prefix)."""
    m = _PATH_ROOT_RE.match(path)
    if m is None:
        return ""
    return singularise(to_identifier(m.group(1)))


def method_name(schema_name: str, method: str, path: str) -> str:
    """Method name, qualified with the path's resource when it is not the service's own."""
    root = path_root(path)
    if schema_name.startswith(root):
        return to_identifier(method)
    return to_identifier(f"{method}For{root}")


def collect_service_entries(
    schemas: dict[str, Any],
    marker: str = OPERATIONS_MARKER,
) -> list[tuple[str, list[tuple[str, str, str]]]]:
    """(schema key, [(method_name, verb, path), ...]) for every marked schema."""
    entries = []
    for key, node in schemas.items():
        if marker not in node:
            continue
        methods = [
            (m["method_name"], m["operation"], m["path"])
            for m in node[marker]
            if m.get("method_on") == "service"
        ]
        entries.append((key, methods))
    return entries


def _parameter_type(schema: dict[str, Any]) -> str:
    """Declared type, else the first non-object anyOf alternative's type."""
    if "type" in schema:
        return schema["type"]
    for alternative in schema.get("anyOf", []):
        alt_type = alternative.get("type")
        if alt_type is not None and alt_type != "object":
            return alt_type
    return "object" if "anyOf" in schema else ""


def parse_parameters(operation: dict[str, Any]) -> tuple[Parameter, ...]:
    """Path and query parameters, required first, otherwise in document order."""
    params = [
        Parameter(
            wire_name=param["name"],
            name=parameter_name(param["name"]),
            required=bool(param.get("required", False)),
            scalar_type=_parameter_type(param.get("schema", {})),
            location=param.get("in", "query"),
        )
        for param in operation.get("parameters", [])
    ]
    return tuple(sorted(params, key=lambda p: 0 if p.required else 1))


def has_form_parameters(operation: dict[str, Any]) -> bool:
    """True when the operation declares a form-encoded body with properties."""
    content = (operation.get("requestBody") or {}).get("content", {})
    schema = (content.get(FORM_CONTENT_TYPE) or {}).get("schema") or {}
    return bool(schema.get("properties"))


def get_response_ref(operation: dict[str, Any], where: str) -> str:
    """$ref of the 200 JSON response: direct, first anyOf, or data.items."""
    try:
        schema = operation["responses"]["200"]["content"][JSON_CONTENT_TYPE]["schema"]
    except (KeyError, TypeError) as exc:
        raise UnhandledResponseType(f"{where}: no 200 {JSON_CONTENT_TYPE} response schema") from exc

    if "$ref" in schema:
        return schema["$ref"]
    any_of = schema.get("anyOf")
    if any_of:
        ref = any_of[0].get("$ref")
        if ref is None:
            raise UnhandledResponseType(f"{where}: first anyOf response is not a reference: {any_of[0]!r}")
        return ref
    ref = schema.get("properties", {}).get("data", {}).get("items", {}).get("$ref")
    if ref is None:
        raise UnhandledResponseType(f"{where}: unhandled response type {schema!r}")
    return ref


def invocation_pattern(verb: str, has_form: bool, where: str) -> InvocationPattern:
    """Pick the runtime client call for a verb."""
    if verb == "get":
        return InvocationPattern.GET_WITH_PARAMETERS if has_form else InvocationPattern.GET
    if verb == "post":
        return InvocationPattern.POST_WITH_BODY if has_form else InvocationPattern.POST_WITHOUT_BODY
    if verb == "delete":
        return InvocationPattern.DELETE
    raise UnhandledVerb(f"{where}: unhandled verb {verb!r}")


def _find_operation(paths: dict[str, Any], path: str, verb: str, where: str) -> dict[str, Any]:
    path_item = paths.get(path)
    if path_item is None:
        raise UnresolvableReference(f"{where}: path {path!r} is not in paths")
    operation = path_item.get(verb)
    if operation is None:
        raise UnresolvableReference(f"{where}: path {path!r} has no {verb!r} operation")
    return operation


def build_operation(
    document: SchemaDocument,
    types: TypeModel,
    schema_name: str,
    method: str,
    verb: str,
    path: str,
) -> Operation:
    """Resolve one marker entry into an operation."""
    name = method_name(schema_name, method, path)
    where = f"{schema_name}{SERVICE_SUFFIX}.{name}"
    operation = _find_operation(document.paths, path, verb, where)

    parameters = parse_parameters(operation)
    has_form = has_form_parameters(operation)

    response_type = to_identifier(resolve_ref(document.schemas, get_response_ref(operation, where), where))
    if response_type not in types:
        raise UnresolvableReference(f"{where}: response type {response_type!r} was not generated")

    return Operation(
        name=name,
        verb=verb,
        path=path,
        parameters=parameters,
        response_type=response_type,
        pattern=invocation_pattern(verb, has_form, where),
        description=operation.get("description"),
    )


def build_services(
    document: SchemaDocument,
    types: TypeModel,
    marker: str = OPERATIONS_MARKER,
) -> list[ServiceGroup]:
    """Build one service per marked schema, in document order."""
    services = []
    for key, methods in collect_service_entries(document.schemas, marker):
        schema_name = to_identifier(key)
        operations = tuple(
            build_operation(document, types, schema_name, method, verb, path)
            for method, verb, path in methods
        )
        logger.debug(f"{schema_name}{SERVICE_SUFFIX}: {len(operations)} operations")
        services.append(
            ServiceGroup(
                name=f"{schema_name}{SERVICE_SUFFIX}",
                schema_name=schema_name,
                operations=operations,
            )
        )
    return services

"""Datatypes shared by the builders and the code emitter."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PropertyDescriptor:
    """Canonical view of one raw schema node."""

    type_tag: str | None = None
    nullable: bool = False
    description: str | None = None
    enum_literals: tuple[str, ...] | None = None
    alternatives: tuple[PropertyDescriptor, ...] | None = None
    items: PropertyDescriptor | None = None
    ref: str | None = None
    properties: dict[str, PropertyDescriptor] = field(default_factory=dict)
    required: frozenset[str] = frozenset()


# Type references. Named types are referenced by name only, so declarations
# may refer to types declared later in the output.


@dataclass(frozen=True)
class ScalarRef:
    tag: str


@dataclass(frozen=True)
class NamedRef:
    name: str


@dataclass(frozen=True)
class ListRef:
    item: TypeRef


@dataclass(frozen=True)
class MapRef:
    """String-keyed string map."""


TypeRef = ScalarRef | NamedRef | ListRef | MapRef


@dataclass(frozen=True)
class Field:
    """One field of a record type."""

    name: str
    type_ref: TypeRef
    optional: bool = False
    wire_name: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class Variant:
    """One alternative of a tagged union."""

    name: str
    tag: str
    payload: TypeRef


@dataclass(frozen=True)
class RecordType:
    name: str
    fields: tuple[Field, ...]
    description: str | None = None


@dataclass(frozen=True)
class TaggedUnionType:
    name: str
    variants: tuple[Variant, ...]
    description: str | None = None


@dataclass(frozen=True)
class EnumType:
    name: str
    literals: tuple[str, ...]
    description: str | None = None


NamedType = RecordType | TaggedUnionType | EnumType


@dataclass(frozen=True)
class TypeModel:
    """Ordered declarations plus a lookup table keyed by type name."""

    declarations: tuple[NamedType, ...]
    by_name: dict[str, NamedType]

    def __contains__(self, name: object) -> bool:
        return name in self.by_name


class InvocationPattern(str, enum.Enum):
    """Runtime client call used by a generated operation.

    Values are the RestApiClient method names.
    """

    GET_WITH_PARAMETERS = "get_with"
    GET = "get"
    POST_WITHOUT_BODY = "post_without"
    POST_WITH_BODY = "post"
    DELETE = "delete"

    @property
    def takes_body(self) -> bool:
        return self in (InvocationPattern.GET_WITH_PARAMETERS, InvocationPattern.POST_WITH_BODY)


@dataclass(frozen=True)
class Parameter:
    """One path or query parameter of an operation."""

    wire_name: str
    name: str
    required: bool
    scalar_type: str
    location: str = "query"


@dataclass(frozen=True)
class Operation:
    """One generated service method."""

    name: str
    verb: str
    path: str
    parameters: tuple[Parameter, ...]
    response_type: str
    pattern: InvocationPattern
    description: str | None = None


@dataclass(frozen=True)
class ServiceGroup:
    """All operations linked from one schema's resource-operations marker."""

    name: str
    schema_name: str
    operations: tuple[Operation, ...]

"""Build named type declarations from component schemas.

Each schema entry becomes either a tagged union (when it has anyOf) or a
record. Enum and union types discovered inside a record's properties are
declared right after that record: first its enums, then its unions.
"""

from __future__ import annotations

import enum
import logging
from typing import Any

from .config import OptionalityRule
from .errors import DuplicateTypeName, UnhandledPropertyShape
from .loader import resolve_ref
from .model_types import (
    EnumType,
    Field,
    ListRef,
    MapRef,
    NamedRef,
    NamedType,
    PropertyDescriptor,
    RecordType,
    ScalarRef,
    TaggedUnionType,
    TypeModel,
    TypeRef,
    Variant,
)
from .naming import to_identifier
from .schema_parser import enum_from_description, get_properties, looks_like_enum_description

logger = logging.getLogger(__name__)

# Stand-in field for records without any resolvable property
EMPTY_PROPERTIES_FIELD = Field(
    name="EmptyProperties",
    type_ref=ListRef(ScalarRef("string")),
    optional=True,
)

UNION_SUFFIX = "DU"


class PropertyShape(enum.Enum):
    """The branch a property resolves through, in precedence order."""

    ENUM = "enum"
    DESCRIBED_ENUM = "described_enum"
    UNION = "union"
    ARRAY = "array"
    MAP = "map"
    SKIPPED = "skipped"
    SCALAR = "scalar"
    REFERENCE = "reference"
    OMITTED = "omitted"


def property_shape(prop: PropertyDescriptor) -> PropertyShape:
    """Classify a property by the keys that drive its resolution."""
    if prop.enum_literals is not None:
        return PropertyShape.ENUM
    if looks_like_enum_description(prop.description) and enum_from_description(prop.description):
        return PropertyShape.DESCRIBED_ENUM
    if prop.alternatives is not None:
        return PropertyShape.UNION
    if prop.type_tag == "array":
        return PropertyShape.ARRAY
    if prop.type_tag == "object":
        return PropertyShape.MAP
    if prop.type_tag is not None:
        # Enumeration-like text that did not parse: the field is left out
        if looks_like_enum_description(prop.description):
            return PropertyShape.SKIPPED
        return PropertyShape.SCALAR
    if prop.ref is not None:
        return PropertyShape.REFERENCE
    return PropertyShape.OMITTED


def _description(text: str | None) -> str | None:
    if text and text.strip():
        return text
    return None


class TypeModelBuilder:
    """Resolve every schema entry, in document order, into named types."""

    def __init__(
        self,
        schemas: dict[str, Any],
        optionality: OptionalityRule = OptionalityRule.NULLABLE,
    ) -> None:
        self._schemas = schemas
        self._optionality = optionality
        self._declarations: list[NamedType] = []
        self._by_name: dict[str, NamedType] = {}

    def build(self) -> TypeModel:
        for key, node in self._schemas.items():
            self._build_entry(key, node)
        logger.debug(f"Resolved {len(self._declarations)} type declarations")
        return TypeModel(declarations=tuple(self._declarations), by_name=dict(self._by_name))

    def _declare(self, declaration: NamedType) -> None:
        if declaration.name in self._by_name:
            raise DuplicateTypeName(f"Type name {declaration.name!r} is declared twice")
        self._declarations.append(declaration)
        self._by_name[declaration.name] = declaration

    def _ref_name(self, ref: str, where: str) -> str:
        return to_identifier(resolve_ref(self._schemas, ref, where))

    def _build_entry(self, key: str, node: dict[str, Any]) -> None:
        name = to_identifier(key)
        schema = get_properties(node)
        if schema.alternatives is not None:
            self._declare(self._union(name, schema.alternatives, key, _description(schema.description)))
            return

        fields: list[Field] = []
        enums: list[EnumType] = []
        unions: list[TaggedUnionType] = []
        for prop_key, prop in schema.properties.items():
            field = self._field(name, key, prop_key, prop, schema.required, enums, unions)
            if field is not None:
                fields.append(field)

        self._declare(
            RecordType(
                name=name,
                fields=tuple(fields) or (EMPTY_PROPERTIES_FIELD,),
                description=_description(schema.description),
            )
        )
        for declaration in (*enums, *unions):
            self._declare(declaration)

    def _field(
        self,
        owner: str,
        owner_key: str,
        prop_key: str,
        prop: PropertyDescriptor,
        required: frozenset[str],
        enums: list[EnumType],
        unions: list[TaggedUnionType],
    ) -> Field | None:
        """Resolve one property to a field, or None when it yields no field."""
        field_name = to_identifier(prop_key)
        nested_name = f"{owner}{field_name}"
        where = f"{owner_key}.{prop_key}"
        shape = property_shape(prop)

        type_ref: TypeRef
        if shape is PropertyShape.ENUM:
            enums.append(EnumType(nested_name, prop.enum_literals or ()))
            type_ref = NamedRef(nested_name)
        elif shape is PropertyShape.DESCRIBED_ENUM:
            enums.append(EnumType(nested_name, enum_from_description(prop.description) or ()))
            type_ref = NamedRef(nested_name)
        elif shape is PropertyShape.UNION:
            union_name = f"{nested_name}{UNION_SUFFIX}"
            unions.append(self._union(union_name, prop.alternatives or (), where))
            type_ref = NamedRef(union_name)
        elif shape is PropertyShape.ARRAY:
            type_ref = ListRef(self._item_ref(nested_name, prop.items, where, enums, unions))
        elif shape is PropertyShape.MAP:
            type_ref = MapRef()
        elif shape is PropertyShape.SCALAR:
            type_ref = ScalarRef(prop.type_tag or "")
        elif shape is PropertyShape.REFERENCE:
            type_ref = self._ref_name_ref(prop.ref or "", where)
        elif shape in (PropertyShape.SKIPPED, PropertyShape.OMITTED):
            logger.debug(f"{where}: no field generated ({shape.value})")
            return None
        else:
            raise UnhandledPropertyShape(f"{where}: unhandled property {prop!r}")

        return Field(
            name=field_name,
            type_ref=type_ref,
            optional=self._optionality.is_optional(prop.nullable, prop_key in required),
            wire_name=prop_key if prop_key != field_name else None,
            description=_description(prop.description),
        )

    def _ref_name_ref(self, ref: str, where: str) -> NamedRef:
        return NamedRef(self._ref_name(ref, where))

    def _item_ref(
        self,
        nested_name: str,
        items: PropertyDescriptor | None,
        where: str,
        enums: list[EnumType],
        unions: list[TaggedUnionType],
    ) -> TypeRef:
        """Resolve one level of array items; nested arrays are not supported."""
        if items is None:
            raise UnhandledPropertyShape(f"{where}: array without items")
        if items.ref is not None:
            return self._ref_name_ref(items.ref, where)
        if items.enum_literals is not None:
            enums.append(EnumType(nested_name, items.enum_literals))
            return NamedRef(nested_name)
        if items.type_tag == "array":
            raise UnhandledPropertyShape(f"{where}: arrays of arrays are not supported")
        if items.type_tag == "object":
            return MapRef()
        if items.type_tag is not None:
            return ScalarRef(items.type_tag)
        if items.alternatives is not None:
            union_name = f"{nested_name}{UNION_SUFFIX}"
            unions.append(self._union(union_name, items.alternatives, where))
            return NamedRef(union_name)
        raise UnhandledPropertyShape(f"{where}: unhandled array items {items!r}")

    def _union(
        self,
        name: str,
        alternatives: tuple[PropertyDescriptor, ...],
        where: str,
        description: str | None = None,
    ) -> TaggedUnionType:
        variants: list[Variant] = []
        seen: set[str] = set()
        for alternative in alternatives:
            variant = self._variant(alternative, where)
            if variant is None:
                continue
            if variant.name in seen:
                logger.debug(f"{where}: duplicate variant {variant.name} dropped")
                continue
            seen.add(variant.name)
            variants.append(variant)
        return TaggedUnionType(name=name, variants=tuple(variants), description=description)

    def _variant(self, alternative: PropertyDescriptor, where: str) -> Variant | None:
        tag = alternative.type_tag
        if tag is not None:
            if tag == "array":
                raise UnhandledPropertyShape(f"{where}: unions of arrays are not supported")
            payload: TypeRef = MapRef() if tag == "object" else ScalarRef(tag)
            return Variant(name=to_identifier(tag), tag=tag, payload=payload)
        if alternative.ref is not None:
            target = self._ref_name(alternative.ref, where)
            return Variant(name=target, tag=target, payload=NamedRef(target))
        return None


def build_type_model(
    schemas: dict[str, Any],
    optionality: OptionalityRule = OptionalityRule.NULLABLE,
) -> TypeModel:
    """Resolve all component schemas into ordered named types."""
    return TypeModelBuilder(schemas, optionality).build()

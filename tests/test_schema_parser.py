"""Tests for the schema_parser module."""

from stripegen.model_types import PropertyDescriptor
from stripegen.schema_parser import (
    enum_from_description,
    enum_from_explicit,
    get_properties,
    looks_like_enum_description,
    resolve_enum,
)


class TestGetProperties:
    """Raw node → PropertyDescriptor extraction."""

    def test_empty_node_defaults(self):
        assert get_properties({}) == PropertyDescriptor()

    def test_scalar(self):
        prop = get_properties({"type": "integer", "nullable": True, "description": "Amount."})
        assert prop.type_tag == "integer"
        assert prop.nullable is True
        assert prop.description == "Amount."

    def test_nullable_defaults_false(self):
        assert get_properties({"type": "string"}).nullable is False

    def test_reference(self):
        assert get_properties({"$ref": "#/components/schemas/card"}).ref == "#/components/schemas/card"

    def test_any_of_extracted_recursively(self):
        prop = get_properties({"anyOf": [{"type": "string"}, {"$ref": "#/components/schemas/card"}]})
        assert prop.alternatives is not None
        assert [a.type_tag for a in prop.alternatives] == ["string", None]
        assert prop.alternatives[1].ref == "#/components/schemas/card"

    def test_array_items(self):
        prop = get_properties({"type": "array", "items": {"type": "string"}})
        assert prop.items == PropertyDescriptor(type_tag="string")

    def test_properties_keep_document_order(self):
        prop = get_properties({
            "properties": {"zeta": {"type": "string"}, "alpha": {"type": "integer"}},
            "required": ["alpha"],
        })
        assert list(prop.properties) == ["zeta", "alpha"]
        assert prop.required == frozenset({"alpha"})

    def test_explicit_enum_literals_as_strings(self):
        prop = get_properties({"enum": ["a", 1, True]})
        assert prop.enum_literals == ("a", "1", "true")


class TestEnumFromDescription:
    """Enumeration-sentence pattern."""

    def test_three_literals(self):
        text = "Can be `charge`, `refund`, or `payout`."
        assert enum_from_description(text) == ("charge", "refund", "payout")

    def test_two_literals(self):
        assert enum_from_description("Can be `on` or `off`.") == ("on", "off")

    def test_or_null_terminator(self):
        text = "Reason for the refund. Can be `duplicate`, `fraudulent`, `requested_by_customer`, or null."
        assert enum_from_description(text) == ("duplicate", "fraudulent", "requested_by_customer")

    def test_literals_with_spaces(self):
        text = "Card brand. Can be `American Express`, `Diners Club`, `Visa`, or `Unknown`."
        assert enum_from_description(text) == ("American Express", "Diners Club", "Visa", "Unknown")

    def test_backticks_in_filler_ignored(self):
        text = "Can be `manual` (uses `capture`), `automatic`, or `none`."
        assert enum_from_description(text) == ("manual", "automatic", "none")

    def test_or_inside_continuation_filler(self):
        assert enum_from_description("Can be `a` or `aa`, `b`, or `c`.") == ("a", "b", "c")

    def test_no_match(self):
        assert enum_from_description("Error code. Can be `card_declined` among others") is None
        assert enum_from_description("A plain description.") is None
        assert enum_from_description(None) is None

    def test_looks_like_enum_description(self):
        assert looks_like_enum_description("Can be `x` among others")
        assert not looks_like_enum_description("Plain text")
        assert not looks_like_enum_description("   ")
        assert not looks_like_enum_description(None)


class TestResolveEnum:
    """Explicit enum wins over the description."""

    def test_explicit(self):
        prop = get_properties({"enum": ["credit", "debit"]})
        assert enum_from_explicit(prop) == ("credit", "debit")

    def test_explicit_wins_over_description(self):
        prop = get_properties({
            "description": "Can be `credit`, `debit`, or `unknown`.",
            "enum": ["credit", "debit", "prepaid", "unknown"],
        })
        assert resolve_enum(prop) == ("credit", "debit", "prepaid", "unknown")

    def test_description_used_without_explicit(self):
        prop = get_properties({"description": "Can be `a`, `b`, or `c`.", "type": "string"})
        assert resolve_enum(prop) == ("a", "b", "c")

    def test_none(self):
        assert resolve_enum(get_properties({"type": "string"})) is None

"""Entry point: python -m stripegen

Reads spec/openapi.json (or --spec), generates generated/models.py and
generated/services.py (or --output).
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .codegen import generate
from .config import GeneratorConfig, OptionalityRule
from .errors import GenerationError
from .loader import SchemaDocument, load_spec
from .service_builder import build_services
from .type_builder import build_type_model


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="stripegen",
        description="Generate typed models and service bindings from an API document",
    )
    parser.add_argument("--spec", type=Path, help="Path to the JSON API document")
    parser.add_argument("--output", type=Path, help="Output package directory")
    parser.add_argument(
        "--optional-fields",
        choices=[rule.value for rule in OptionalityRule],
        default=OptionalityRule.NULLABLE.value,
        help="Which properties become optional fields (default: nullable)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log resolution details")
    return parser


def run(config: GeneratorConfig) -> Path:
    """Run one full generation pass."""
    document = SchemaDocument.from_dict(load_spec(config.spec_path))
    types = build_type_model(document.schemas, config.optionality)
    services = build_services(document, types, config.operations_marker)
    return generate(types, services, config.output_dir)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = GeneratorConfig(
        spec_path=args.spec,
        output_dir=args.output,
        optionality=OptionalityRule(args.optional_fields),
    )
    try:
        run(config)
    except GenerationError as exc:
        parser.error(str(exc))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Run configuration and developer credentials.

The API key is read from the environment, never from the source document:
  STRIPE_TEST_API_KEY  secret key used by the runtime client
  STRIPE_API_BASE      base URL override (defaults to the live API host)
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from pathlib import Path

from .errors import GenerationError

API_KEY_ENV = "STRIPE_TEST_API_KEY"
API_BASE_ENV = "STRIPE_API_BASE"
DEFAULT_API_BASE = "https://api.stripe.com"

# Schema extension linking a schema to the operations of its service
OPERATIONS_MARKER = "x-stripeOperations"


class ConfigError(GenerationError):
    """Raised when required configuration is missing."""


class OptionalityRule(str, enum.Enum):
    """Decides which record fields are generated as optional.

    nullable  optional iff the property is nullable (default)
    required  optional iff the property is missing from the owner's required list
    either    optional if nullable or not required
    """

    NULLABLE = "nullable"
    REQUIRED = "required"
    EITHER = "either"

    def is_optional(self, nullable: bool, required: bool) -> bool:
        if self is OptionalityRule.NULLABLE:
            return nullable
        if self is OptionalityRule.REQUIRED:
            return not required
        return nullable or not required


@dataclass(frozen=True)
class GeneratorConfig:
    """Options for one generation run."""

    spec_path: Path | None = None
    output_dir: Path | None = None
    optionality: OptionalityRule = OptionalityRule.NULLABLE
    operations_marker: str = OPERATIONS_MARKER


def get_api_key(name: str = API_KEY_ENV) -> str:
    """Look up the developer's API key by name."""
    value = os.environ.get(name, "").strip()
    if not value:
        raise ConfigError(f"{name} is not set; export it before calling the API")
    return value


def get_api_base() -> str:
    """Base URL for API requests."""
    return os.environ.get(API_BASE_ENV, DEFAULT_API_BASE).rstrip("/")

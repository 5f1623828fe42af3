"""Error taxonomy for a generation run.

Every GenerationError is fatal: the run aborts without writing partial output.
"""

from __future__ import annotations


class GenerationError(RuntimeError):
    """Base class for errors that abort a generation run."""


class SpecLoadError(GenerationError):
    """Raised when the source document cannot be read or is not a JSON object."""


class UnresolvableReference(GenerationError):
    """Raised when a $ref (or marker path) names something absent from the document."""


class UnhandledPropertyShape(GenerationError):
    """Raised when a property or array item matches no resolution branch."""


class UnhandledResponseType(GenerationError):
    """Raised when an operation's 200 response has no usable schema reference."""


class UnhandledVerb(GenerationError):
    """Raised for HTTP verbs outside get/post/delete."""


class DuplicateTypeName(GenerationError):
    """Raised when two declarations normalize to the same type name."""

"""Exception hierarchy for speccatalog.

All exceptions inherit from :class:`SpecCatalogError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`speccatalog.exit_codes`.
The CLI entry point :func:`speccatalog.app.main` catches
``SpecCatalogError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SpecCatalogError           (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- NotFoundError          (exit 4)
    +-- SpecParseError         (exit 7)
    +-- ReferenceError_        (exit 8)
    +-- ResolutionTimeoutError (exit 9)
    +-- ConfigError            (exit 1)
"""

from speccatalog.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_REFERENCE_ERROR,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_TIMEOUT,
)


class SpecCatalogError(Exception):
    """Base exception for all speccatalog errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`speccatalog.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecCatalogError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(SpecCatalogError):
    """Raised when an identifier was not produced by discovery (or the fallback)."""

    exit_code = EXIT_NOT_FOUND


class SpecParseError(SpecCatalogError):
    """Raised when specification content is not well-formed for its declared format."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class ReferenceError_(SpecCatalogError):
    """Raised when a ``$ref`` target does not exist, cannot be fetched, or forms a rejected cycle.

    Named with a trailing underscore to avoid shadowing the built-in
    ``ReferenceError``.
    """

    exit_code = EXIT_REFERENCE_ERROR


class ResolutionTimeoutError(SpecCatalogError):
    """Raised when loading and dereferencing a document exceeds its time bound."""

    exit_code = EXIT_TIMEOUT


class ConfigError(SpecCatalogError):
    """Raised for configuration problems (invalid project config, unusable fallback)."""

    exit_code = EXIT_GENERIC_FAILURE

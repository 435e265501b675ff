"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~speccatalog.exceptions.SpecCatalogError` subclass.
Shell wrappers and CI jobs can inspect the exit code to tell a missing
document apart from a malformed one without parsing stderr.

Example::

    $ speccatalog catalog ./openapi/missing.json
    $ echo $?
    4   # EXIT_NOT_FOUND -- the identifier was never discovered
"""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_NOT_FOUND = 4
"""The requested specification identifier is unknown."""

EXIT_SPEC_PARSE_ERROR = 7
"""The specification content is not well-formed JSON or YAML."""

EXIT_REFERENCE_ERROR = 8
"""A ``$ref`` could not be resolved, or a reference cycle was rejected."""

EXIT_TIMEOUT = 9
"""Resolving a specification exceeded the configured time bound."""

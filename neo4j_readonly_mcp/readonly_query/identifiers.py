"""Identifier-safety check for labels and relationship types.

Labels and relationship types cannot be passed as Cypher parameters, so
tools interpolate them into query templates.  Every interpolated
identifier goes through ``validate_identifier`` first.
"""

import re

from neo4j_readonly_mcp.shared.exceptions import InvalidIdentifierError

_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_safe_identifier(value: str) -> bool:
    return bool(_IDENTIFIER_PATTERN.match(value))


def validate_identifier(value: str, kind: str = "label") -> str:
    """Return ``value`` unchanged if it is a plain identifier.

    Raises:
        InvalidIdentifierError: If the value is empty, starts with a digit
            or contains anything but letters, digits and underscores.
    """
    if not is_safe_identifier(value):
        raise InvalidIdentifierError(
            f"Invalid {kind} name {value!r}. "
            f"{kind.capitalize()}s must contain only letters, numbers, and underscores "
            f"and must not start with a number."
        )
    return value


def quote_identifier(value: str, kind: str = "label") -> str:
    """Validate and back-quote an identifier for interpolation."""
    return f"`{validate_identifier(value, kind)}`"

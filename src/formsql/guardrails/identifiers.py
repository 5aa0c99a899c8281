"""
SQL Identifier Validation
Gates every table/column name that originates from free text (AI output, pasted DDL)
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from ..utils import FormSQLMetrics, IdentifierError, get_logger

logger = get_logger(__name__)

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

RESERVED_KEYWORDS = frozenset({
    'SELECT', 'INSERT', 'UPDATE', 'DELETE', 'DROP', 'TRUNCATE', 'ALTER',
    'CREATE', 'EXEC', 'EXECUTE', 'GRANT', 'REVOKE', 'UNION',
})


@dataclass(frozen=True)
class IdentifierValidation:
    """Outcome of validating one identifier"""
    valid: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


def is_reserved_keyword(name: str, extra_keywords: Iterable[str] = ()) -> bool:
    upper = name.upper()
    return upper in RESERVED_KEYWORDS or upper in {k.upper() for k in extra_keywords}


def validate_identifier(name: str, extra_keywords: Iterable[str] = ()) -> IdentifierValidation:
    """
    Check that ``name`` is a safe, unquoted SQL identifier.

    Args:
        name: Table or column name to check
        extra_keywords: Additional names to deny on top of the built-in list

    Returns:
        IdentifierValidation with a human-readable reason on failure
    """
    if not name:
        return IdentifierValidation(False, "identifier is empty")

    if not IDENTIFIER_PATTERN.match(name):
        if not re.match(r'[A-Za-z_]', name[0]):
            return IdentifierValidation(False, "starts with invalid character")
        return IdentifierValidation(False, "contains invalid characters")

    if is_reserved_keyword(name, extra_keywords):
        return IdentifierValidation(False, "reserved keyword")

    return IdentifierValidation(True)


def ensure_identifier(name: str, context: str = "identifier", extra_keywords: Iterable[str] = ()) -> str:
    """
    Validate ``name`` and return it unchanged, raising on failure.

    Raises:
        IdentifierError: if the name is not a safe identifier
    """
    result = validate_identifier(name, extra_keywords)
    if not result.valid:
        logger.warning(f"Rejected {context} {name!r}: {result.error}")
        FormSQLMetrics.record_identifier_rejection(result.error or "unknown")
        raise IdentifierError(
            f'Invalid {context}: "{name}" ({result.error})',
            identifier=name,
            reason=result.error,
        )
    return name

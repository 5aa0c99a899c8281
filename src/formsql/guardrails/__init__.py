"""
Guardrails Package for FormSQL
"""
from .identifiers import (
    IdentifierValidation,
    RESERVED_KEYWORDS,
    validate_identifier,
    ensure_identifier,
    is_reserved_keyword,
)
from .safety import (
    DangerScan,
    OperationSafety,
    scan_dangerous_sql,
    validate_operations,
    check_operation_identifiers,
)
from .ai_output import (
    extract_json_payload,
    repair_truncated_json_array,
    sanitize_questions,
    sanitize_operations,
    extract_operations_from_chat_response,
    extract_sql_from_response,
    split_statements,
    format_sql,
)

__all__ = [
    "IdentifierValidation",
    "RESERVED_KEYWORDS",
    "validate_identifier",
    "ensure_identifier",
    "is_reserved_keyword",
    "DangerScan",
    "OperationSafety",
    "scan_dangerous_sql",
    "validate_operations",
    "check_operation_identifiers",
    "extract_json_payload",
    "repair_truncated_json_array",
    "sanitize_questions",
    "sanitize_operations",
    "extract_operations_from_chat_response",
    "extract_sql_from_response",
    "split_statements",
    "format_sql",
]

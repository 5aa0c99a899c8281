"""
Safety Guardrail Validator
Advisory checks on SQL text and structured operations

Nothing here blocks compilation. Callers surface the warnings and let a
human acknowledge them before destructive or AI-proposed SQL runs.

The UPDATE ... SET pattern matches across newlines. Compiled UPDATEs put
SET on its own line, so a single-line match would never flag them.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Pattern, Sequence, Tuple

from ..schemas import OperationType, SQLOperation
from ..schemas.models import enum_value
from ..utils import FormSQLMetrics, get_logger
from .identifiers import validate_identifier

logger = get_logger(__name__)

DANGEROUS_PATTERNS: List[Tuple[Pattern[str], str]] = [
    (re.compile(r'\bDROP\s+(TABLE|DATABASE|INDEX|VIEW|SCHEMA)\b', re.IGNORECASE), "DROP statement detected"),
    (re.compile(r'\bTRUNCATE\s+TABLE\b', re.IGNORECASE), "TRUNCATE TABLE detected"),
    (re.compile(r'\bALTER\s+TABLE\b', re.IGNORECASE), "ALTER TABLE detected"),
    (re.compile(r'\bGRANT\b', re.IGNORECASE), "GRANT statement detected"),
    (re.compile(r'\bREVOKE\b', re.IGNORECASE), "REVOKE statement detected"),
    (re.compile(r'\bDELETE\s+FROM\b', re.IGNORECASE), "DELETE FROM detected: verify WHERE clause"),
    (re.compile(r'\bUPDATE\b.*?\bSET\b', re.IGNORECASE | re.DOTALL), "UPDATE detected: verify WHERE clause"),
]


@dataclass
class DangerScan:
    """Result of scanning SQL text"""
    dangerous: bool
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"dangerous": self.dangerous, "warnings": self.warnings}


@dataclass
class OperationSafety:
    """Result of statically checking structured operations"""
    safe: bool
    critical_warnings: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def all_warnings(self) -> List[str]:
        return self.critical_warnings + self.warnings

    def to_dict(self) -> Dict[str, Any]:
        return {
            "safe": self.safe,
            "critical_warnings": self.critical_warnings,
            "warnings": self.warnings,
        }


def scan_dangerous_sql(sql: str) -> DangerScan:
    """Flag destructive statements; one warning per matching pattern"""
    warnings = [label for pattern, label in DANGEROUS_PATTERNS if pattern.search(sql or "")]
    result = DangerScan(dangerous=bool(warnings), warnings=warnings)
    if result.dangerous:
        logger.info(f"Dangerous SQL patterns found: {', '.join(warnings)}")
    FormSQLMetrics.record_guardrail("sql_scan", result.dangerous)
    return result


def validate_operations(operations: Sequence[SQLOperation]) -> OperationSafety:
    """
    Check operations for WHERE-less mutations.

    DELETE or UPDATE without conditions is critical; DELETE with conditions
    is informational. ``safe`` is true iff nothing critical fired.
    """
    critical: List[str] = []
    warnings: List[str] = []

    for idx, op in enumerate(operations, 1):
        op_type = enum_value(op.operation_type)
        has_conditions = bool(op.conditions)

        if op_type == OperationType.DELETE.value:
            if not has_conditions:
                critical.append(
                    f'Operation {idx}: DELETE without WHERE conditions will delete ALL rows in "{op.table_name}"'
                )
            else:
                warnings.append(f'Operation {idx}: DELETE operation detected on "{op.table_name}"')

        if op_type == OperationType.UPDATE.value and not has_conditions:
            critical.append(
                f'Operation {idx}: UPDATE without WHERE conditions will update ALL rows in "{op.table_name}"'
            )

    result = OperationSafety(safe=not critical, critical_warnings=critical, warnings=warnings)
    if not result.safe:
        logger.warning(f"{len(critical)} critical operation warning(s)")
    FormSQLMetrics.record_guardrail("operations", not result.safe)
    return result


def check_operation_identifiers(
    operations: Sequence[SQLOperation],
    extra_keywords: Iterable[str] = (),
) -> List[str]:
    """List every unsafe table, mapped column or condition column"""
    keywords = list(extra_keywords)
    errors: List[str] = []

    for idx, op in enumerate(operations, 1):
        result = validate_identifier(op.table_name, keywords)
        if not result.valid:
            errors.append(f'Operation {idx}: Invalid table name "{op.table_name}" - {result.error}')

        for m_idx, mapping in enumerate(op.column_mappings, 1):
            result = validate_identifier(mapping.column_name, keywords)
            if not result.valid:
                errors.append(
                    f'Operation {idx}, Mapping {m_idx}: Invalid column "{mapping.column_name}" - {result.error}'
                )

        for c_idx, condition in enumerate(op.conditions, 1):
            result = validate_identifier(condition.column_name, keywords)
            if not result.valid:
                errors.append(
                    f'Operation {idx}, Condition {c_idx}: Invalid column "{condition.column_name}" - {result.error}'
                )

    FormSQLMetrics.record_guardrail("identifiers", bool(errors))
    return errors

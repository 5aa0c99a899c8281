"""
AI Output Sanitiser
Recovers and validates questions, operations and SQL proposed by a chat model

The model's text is untrusted: identifiers are validated, unusable items
are dropped with a warning and missing bookkeeping fields are filled in.
"""
from __future__ import annotations

import json
import re
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple

import sqlparse
from sqlparse.exceptions import SQLParseError

from ..schemas import (
    ConditionOperator,
    ConditionValueType,
    OperationType,
    Question,
    QuestionType,
    SQLOperation,
)
from ..utils import AIOutputError, get_logger
from .identifiers import validate_identifier

logger = get_logger(__name__)

JSON_FENCE_PATTERN = re.compile(r'```(?:json)?\s*([\s\S]*?)\s*```')
SQL_FENCE_PATTERN = re.compile(r'```sql\s*\n([\s\S]*?)```')
GENERIC_FENCE_PATTERN = re.compile(r'```\s*\n([\s\S]*?)```')
TRAILING_COMMA_PATTERN = re.compile(r',\s*$')
TEMPLATE_PATTERN = re.compile(r'^\$\{.+\}$')

VALID_QUESTION_TYPES = {t.value for t in QuestionType}
VALID_OPERATION_TYPES = {t.value for t in OperationType}

SYMBOLIC_OPERATORS = {
    "=": ConditionOperator.EQUALS.value,
    "==": ConditionOperator.EQUALS.value,
    "!=": ConditionOperator.NOT_EQUALS.value,
    "<>": ConditionOperator.NOT_EQUALS.value,
    ">": ConditionOperator.GREATER_THAN.value,
    "<": ConditionOperator.LESS_THAN.value,
    "like": ConditionOperator.LIKE.value,
    "in": ConditionOperator.IN.value,
}


def _stamp() -> int:
    return int(time.time() * 1000)


def repair_truncated_json_array(text: str, max_attempts: int = 20) -> Optional[List[Any]]:
    """
    Recover the complete leading objects of a truncated JSON array.

    Closes the array after successively earlier ``}`` characters and
    retries, one cut per attempt.
    """
    cut = len(text)
    candidate = TRAILING_COMMA_PATTERN.sub('', text.rstrip()) + ']'
    for _ in range(max_attempts):
        try:
            parsed = json.loads(candidate)
            if isinstance(parsed, list):
                return parsed
            return None
        except json.JSONDecodeError:
            cut = text.rfind('}', 0, cut)
            if cut == -1:
                return None
            candidate = TRAILING_COMMA_PATTERN.sub('', text[:cut + 1].rstrip()) + ']'
    return None


def extract_json_payload(text: str, max_repair_attempts: int = 20) -> Any:
    """
    Pull a JSON document out of a model response.

    Raises:
        AIOutputError: empty response, non-JSON content, or a truncated
            array with nothing recoverable
    """
    if not text or not text.strip():
        raise AIOutputError("AI returned an empty response", raw_output=text)

    json_text = text.strip()
    fence = JSON_FENCE_PATTERN.search(json_text)
    if fence:
        json_text = fence.group(1).strip()

    if not json_text.startswith(('[', '{')):
        raise AIOutputError(
            f'AI did not return valid JSON. Response: "{text[:200]}..."',
            raw_output=text,
        )

    try:
        return json.loads(json_text)
    except json.JSONDecodeError as e:
        repaired = repair_truncated_json_array(json_text, max_repair_attempts)
        if repaired:
            logger.warning(f"AI response was truncated; recovered {len(repaired)} item(s) from partial JSON")
            return repaired
        raise AIOutputError(
            f'AI returned malformed JSON (likely truncated). JSON received: "{json_text[:300]}..."',
            raw_output=text,
            original_error=e,
        ) from e


def _as_list(payload: Any) -> List[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        return [payload]
    raise AIOutputError(f"Expected a JSON array, got {type(payload).__name__}")


def sanitize_questions(
    payload: Any,
    extra_keywords: Iterable[str] = (),
) -> Tuple[List[Question], List[str]]:
    """
    Validate model-proposed questions.

    Items with an unknown type are skipped; unsafe column or table names
    are cleared, not fatal.
    """
    keywords = list(extra_keywords)
    warnings: List[str] = []
    questions: List[Question] = []
    stamp = _stamp()

    for idx, raw in enumerate(_as_list(payload)):
        position = idx + 1
        if not isinstance(raw, dict):
            warnings.append(f"Question {position}: Not an object - skipped")
            continue

        q: Dict[str, Any] = dict(raw)
        if not isinstance(q.get("type"), str) or q["type"] not in VALID_QUESTION_TYPES:
            warnings.append(f'Question {position}: Invalid type "{q.get("type")}" - skipped')
            continue

        column = q.get("sqlColumnName") or q.get("sql_column_name")
        if column:
            result = validate_identifier(str(column), keywords)
            if not result.valid:
                warnings.append(f'Question {position}: Invalid column name "{column}" - {result.error}')
                q["sqlColumnName"] = ""
                q.pop("sql_column_name", None)

        table = q.get("tableName") or q.get("table_name")
        if table:
            result = validate_identifier(str(table), keywords)
            if not result.valid:
                warnings.append(f'Question {position}: Invalid table name "{table}" - {result.error}')
                q["tableName"] = None
                q.pop("table_name", None)

        if not q.get("id"):
            q["id"] = f"q{stamp}_{idx}"
        if not q.get("label"):
            q["label"] = "Untitled Question"
        if q.get("required") is None:
            q["required"] = False
        if q.get("order") is None:
            q["order"] = idx

        questions.append(Question.from_dict(q))

    return questions, warnings


def _objects(value: Any) -> List[Dict[str, Any]]:
    """JSON objects from a value that should be an array of them; anything else is dropped"""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _normalise_condition(raw: Dict[str, Any]) -> Dict[str, Any]:
    condition = dict(raw)
    operator = str(condition.get("operator", "equals")).strip()
    condition["operator"] = SYMBOLIC_OPERATORS.get(operator.lower(), operator.lower())
    if not condition.get("valueType") and not condition.get("value_type"):
        value = str(condition.get("value", ""))
        condition["valueType"] = (
            ConditionValueType.QUESTION.value if TEMPLATE_PATTERN.match(value)
            else ConditionValueType.STATIC.value
        )
    return condition


def sanitize_operations(
    payload: Any,
    extra_keywords: Iterable[str] = (),
) -> Tuple[List[SQLOperation], List[str]]:
    """
    Validate model-proposed SQL operations.

    Skips operations with an unknown type, a missing or unsafe table or
    no column mappings. Unsafe mapping columns and WHERE-less mutations
    are reported but kept so the operator can fix them.
    """
    keywords = list(extra_keywords)
    warnings: List[str] = []
    operations: List[SQLOperation] = []
    stamp = _stamp()

    for idx, raw in enumerate(_as_list(payload)):
        position = idx + 1
        if not isinstance(raw, dict):
            warnings.append(f"Operation {position}: Not an object - skipped")
            continue

        op: Dict[str, Any] = dict(raw)
        op_type = str(op.get("operationType") or op.get("operation_type") or "").upper()
        if op_type not in VALID_OPERATION_TYPES:
            warnings.append(f'Operation {position}: Invalid type "{op_type}" - skipped')
            continue
        op["operationType"] = op_type
        op.pop("operation_type", None)

        table = op.get("tableName") or op.get("table_name")
        if not table:
            warnings.append(f"Operation {position}: Missing table name - skipped")
            continue
        result = validate_identifier(str(table), keywords)
        if not result.valid:
            warnings.append(f'Operation {position}: Invalid table name "{table}" - {result.error}')
            continue

        raw_mappings = op.get("columnMappings") or op.get("column_mappings") or []
        if not isinstance(raw_mappings, list):
            raw_mappings = [raw_mappings]
        mappings = []
        for m_idx, mapping in enumerate(raw_mappings, 1):
            if not isinstance(mapping, dict):
                warnings.append(f"Operation {position}, Mapping {m_idx}: Not an object - skipped")
                continue
            mappings.append(mapping)
            column = str(mapping.get("columnName") or mapping.get("column_name") or "")
            if not validate_identifier(column, keywords).valid:
                warnings.append(f'Operation {position}, Mapping {m_idx}: Invalid column "{column}"')

        if not mappings:
            warnings.append(f"Operation {position}: No column mappings - skipped")
            continue
        op["columnMappings"] = mappings
        op.pop("column_mappings", None)

        conditions = [_normalise_condition(c) for c in _objects(op.get("conditions"))]
        if op_type in (OperationType.UPDATE.value, OperationType.DELETE.value) and not conditions:
            warnings.append(
                f'DANGER: {op_type} on "{table}" has NO WHERE conditions! This could affect all rows.'
            )

        op["conditions"] = conditions
        if not op.get("id"):
            op["id"] = f"op{stamp}_{idx}"
        if op.get("order") is None:
            op["order"] = idx

        operations.append(SQLOperation.from_dict(op))

    return operations, warnings


def extract_operations_from_chat_response(response: str) -> Optional[List[SQLOperation]]:
    """Read the fenced operations array that ends a chat reply; None when absent or unreadable"""
    match = JSON_FENCE_PATTERN.search(response or "")
    if not match:
        return None
    try:
        parsed = json.loads(match.group(1))
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, list) or not parsed:
        return None

    stamp = _stamp()
    operations = []
    for idx, raw in enumerate(parsed):
        if not isinstance(raw, dict):
            continue
        op = dict(raw)
        op["id"] = op.get("id") or f"op{stamp}_{idx}"
        op["conditions"] = [_normalise_condition(c) for c in _objects(op.get("conditions"))]
        op["columnMappings"] = _objects(op.pop("columnMappings", None) or op.pop("column_mappings", None))
        if op.get("order") is None:
            op["order"] = idx
        operations.append(SQLOperation.from_dict(op))
    return operations or None


def extract_sql_from_response(text: str) -> str:
    """SQL from a ```sql fence, else any fence, else the whole trimmed text"""
    match = SQL_FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()

    generic = GENERIC_FENCE_PATTERN.search(text)
    if generic:
        return generic.group(1).strip()

    return text.strip()


def split_statements(sql: str) -> List[str]:
    """Split multi-statement SQL into individual statements"""
    return [statement.strip() for statement in sqlparse.split(sql or "") if statement.strip()]


def format_sql(sql: str, reindent: bool = True, keyword_case: str = 'upper') -> str:
    """
    Format SQL for display.

    Only for showing SQL to a reviewer; compiled output keeps its own
    fixed layout.

    Args:
        sql: SQL text to format
        reindent: Whether to reindent
        keyword_case: Case for keywords ('upper', 'lower', 'capitalize')

    Returns:
        Formatted SQL, or the input unchanged when sqlparse rejects it
    """
    try:
        return sqlparse.format(
            sql,
            reindent=reindent,
            keyword_case=keyword_case,
            indent_tabs=False,
            indent_width=2,
        )
    except SQLParseError as e:
        logger.debug(f"Could not format SQL: {e}")
        return sql

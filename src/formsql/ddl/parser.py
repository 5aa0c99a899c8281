"""
DDL Parser
Turns CREATE TABLE text into column metadata, inferred questions and a suggested INSERT

Only a constrained CREATE TABLE subset is understood. Input is best-effort:
a clause that cannot be read is skipped, never fatal.
"""
from __future__ import annotations

import re
import time
from typing import Callable, List, Optional, Tuple

from ..schemas import (
    ColumnDefinition,
    ColumnMapping,
    OperationType,
    ParsedTable,
    Question,
    SQLOperation,
    ValidationRule,
    ValidationRuleType,
    new_id,
)
from ..utils import FormSQLMetrics, get_logger
from .type_inference import infer_question_type

logger = get_logger(__name__)

CREATE_TABLE_PATTERN = re.compile(
    r'CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?'
    r'(?:["`\[]?\w+["`\]]?\.)?'
    r'["`\[]?(\w+)["`\]]?\s*\(',
    re.IGNORECASE,
)
COLUMN_PATTERN = re.compile(r'^["`\[]?(\w+)["`\]]?\s+(.+)$', re.DOTALL)
TYPE_PATTERN = re.compile(r'^(\w+(?:\s*\([^)]*\))?)')
NOT_NULL_PATTERN = re.compile(r'NOT\s+NULL', re.IGNORECASE)
PRIMARY_KEY_PATTERN = re.compile(r'PRIMARY\s+KEY', re.IGNORECASE)
CHECK_IN_PATTERN = re.compile(
    r'CHECK\s*\(\s*["`\[]?\w+["`\]]?\s+IN\s*\(([^)]+)\)',
    re.IGNORECASE,
)

TABLE_CONSTRAINT_PATTERN = re.compile(
    r'^(PRIMARY\s+KEY|UNIQUE|FOREIGN\s+KEY|INDEX|KEY|CONSTRAINT)\b',
    re.IGNORECASE,
)


def split_top_level(body: str) -> List[str]:
    """
    Split a column block on commas that sit at paren depth 0.

    ``NUMERIC(10,2)`` and ``CHECK (x IN (1,2))`` keep their commas.
    """
    parts: List[str] = []
    depth = 0
    current: List[str] = []

    for ch in body:
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1

        if ch == ',' and depth == 0:
            parts.append(''.join(current).strip())
            current = []
        else:
            current.append(ch)

    tail = ''.join(current).strip()
    if tail:
        parts.append(tail)
    return [part for part in parts if part]


def _extract_body(text: str, open_index: int) -> Tuple[str, int]:
    """Return the text between the paren at ``open_index`` and its match, plus the resume offset"""
    depth = 0
    for index in range(open_index, len(text)):
        ch = text[index]
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth == 0:
                return text[open_index + 1:index], index + 1

    # Unbalanced: take what is there up to the statement end
    end = text.find(';', open_index)
    end = len(text) if end == -1 else end
    return text[open_index + 1:end], end


def _unquote(value: str) -> str:
    value = value.strip()
    if value[:1] in ("'", '"', '`'):
        value = value[1:]
    if value[-1:] in ("'", '"', '`'):
        value = value[:-1]
    return value


def parse_column_clause(clause: str) -> Optional[ColumnDefinition]:
    """
    Parse one clause of a CREATE TABLE body.

    Returns None for table-level constraints and for anything that does
    not look like ``<name> <type> ...``.
    """
    line = clause.strip()
    if not line:
        return None

    if TABLE_CONSTRAINT_PATTERN.match(line):
        return None

    match = COLUMN_PATTERN.match(line)
    if not match:
        return None

    name, rest = match.group(1), match.group(2)

    type_match = TYPE_PATTERN.match(rest)
    raw_type = type_match.group(1) if type_match else 'TEXT'

    check_values = None
    check_match = CHECK_IN_PATTERN.search(rest)
    if check_match:
        check_values = [_unquote(v) for v in check_match.group(1).split(',')]

    return ColumnDefinition(
        name=name,
        raw_type=raw_type,
        nullable=not NOT_NULL_PATTERN.search(rest),
        is_primary_key=bool(PRIMARY_KEY_PATTERN.search(rest)),
        check_values=check_values,
    )


def infer_label(column_name: str) -> str:
    """``created_at`` -> ``Created At``, ``firstName`` -> ``First Name``"""
    label = column_name.replace('_', ' ')
    label = re.sub(r'([a-z])([A-Z])', r'\1 \2', label)
    label = label.lower()
    label = re.sub(r'\b\w', lambda m: m.group(0).upper(), label)
    return label.strip()


def _build_table(
    table_name: str,
    columns: List[ColumnDefinition],
    id_factory: Callable[[], str],
) -> ParsedTable:
    questions: List[Question] = []
    mappings: List[ColumnMapping] = []
    order = 0

    for column in columns:
        if column.is_primary_key:
            continue

        label = infer_label(column.name)
        question_id = id_factory()
        questions.append(Question(
            id=question_id,
            type=infer_question_type(column.raw_type, column.check_values),
            label=label,
            placeholder=f"Enter {label.lower()}",
            required=not column.nullable,
            validation_rules=[] if column.nullable else [ValidationRule(type=ValidationRuleType.REQUIRED)],
            sql_column_name=column.name,
            options=column.check_values,
            order=order,
        ))
        mappings.append(ColumnMapping(question_id=question_id, column_name=column.name, id=id_factory()))
        order += 1

    suggested = SQLOperation(
        id=id_factory(),
        operation_type=OperationType.INSERT,
        table_name=table_name,
        label=f"Insert into {table_name}",
        column_mappings=mappings,
        conditions=[],
        order=0,
    )
    return ParsedTable(
        table_name=table_name,
        questions=questions,
        suggested_operation=suggested,
        columns=columns,
    )


def parse_ddl(ddl: str, id_factory: Optional[Callable[[], str]] = None) -> List[ParsedTable]:
    """
    Parse one or more CREATE TABLE statements.

    Args:
        ddl: Raw DDL text
        id_factory: Generates question/mapping/operation ids (uuid4 by default)

    Returns:
        One ParsedTable per CREATE TABLE found, in text order
    """
    start_time = time.time()
    make_id = id_factory or new_id
    results: List[ParsedTable] = []
    skipped = 0
    position = 0

    while True:
        match = CREATE_TABLE_PATTERN.search(ddl, position)
        if not match:
            break

        table_name = match.group(1).upper()
        body, position = _extract_body(ddl, match.end() - 1)

        columns: List[ColumnDefinition] = []
        for clause in split_top_level(body):
            column = parse_column_clause(clause)
            if column is None:
                logger.debug(f"Skipped clause in {table_name}: {clause[:60]!r}")
                skipped += 1
                continue
            columns.append(column)

        table = _build_table(table_name, columns, make_id)
        logger.debug(
            f"Parsed table {table_name}: {len(columns)} columns, {len(table.questions)} questions"
        )
        results.append(table)

    FormSQLMetrics.record_ddl_parse(time.time() - start_time, len(results), skipped)
    return results

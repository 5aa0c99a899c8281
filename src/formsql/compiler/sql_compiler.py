"""
SQL Operation Compiler
Combines SQL operations, collected responses and question metadata into SQL text

Output format is a compatibility contract with the web UI:

    INSERT INTO <table> (<cols>)
    VALUES (<vals>);

    UPDATE <table>
    SET <col = val, ...>
    WHERE <cond> AND <cond>;

    DELETE FROM <table>
    WHERE <cond>;

Statements are joined by a blank line. Missing questions or responses
never raise: mappings to unknown questions are dropped and unresolved
values become NULL.
"""
from __future__ import annotations

import re
import time
from typing import Dict, List, Optional, Sequence

from ..config import CompilerConfig, VisibilityConfig
from ..flow.visibility import evaluate_condition
from ..guardrails.identifiers import ensure_identifier
from ..schemas import (
    ConditionOperator,
    ConditionValueType,
    Flow,
    OperationType,
    Question,
    Response,
    SQLCondition,
    SQLOperation,
    Submission,
)
from ..schemas.models import enum_value
from ..utils import FormSQLMetrics, get_logger, log_context, log_operation
from .formatter import format_value, quote_sql_string

logger = get_logger(__name__)

TEMPLATE_PATTERN = re.compile(r'\$\{(.+?)\}')

SQL_OPERATORS: Dict[str, str] = {
    ConditionOperator.EQUALS.value: "=",
    ConditionOperator.NOT_EQUALS.value: "!=",
    ConditionOperator.GREATER_THAN.value: ">",
    ConditionOperator.LESS_THAN.value: "<",
    ConditionOperator.LIKE.value: "LIKE",
}


class _Lookup:
    """First-match indexes over questions and responses"""

    def __init__(self, questions: Sequence[Question], responses: Sequence[Response]):
        self.questions: Dict[str, Question] = {}
        for question in questions:
            self.questions.setdefault(question.id, question)
        self.responses: Dict[str, Response] = {}
        for response in responses:
            self.responses.setdefault(response.question_id, response)

    def value_for(self, question_id: str):
        response = self.responses.get(question_id)
        return response.value if response is not None else None


def _check(name: str, context: str, config: CompilerConfig) -> str:
    if config.validate_identifiers:
        return ensure_identifier(name, context, config.extra_reserved_keywords)
    return name


def resolve_condition_value(
    condition: SQLCondition,
    responses: Sequence[Response],
    questions: Sequence[Question],
    config: Optional[CompilerConfig] = None,
) -> str:
    """Render the right-hand side of a WHERE predicate"""
    return _resolve_condition_value(condition, _Lookup(questions, responses), config or CompilerConfig())


def _resolve_condition_value(condition: SQLCondition, lookup: _Lookup, config: CompilerConfig) -> str:
    if enum_value(condition.value_type) == ConditionValueType.STATIC.value:
        return quote_sql_string(condition.value)

    match = TEMPLATE_PATTERN.search(condition.value or "")
    if match:
        question_id = match.group(1)
        question = lookup.questions.get(question_id)
        response = lookup.responses.get(question_id)
        if question is not None and response is not None:
            return format_value(response.value, question.type, config.strict_numbers)

    return "NULL"


def build_where_clause(
    conditions: Sequence[SQLCondition],
    responses: Sequence[Response],
    questions: Sequence[Question],
    config: Optional[CompilerConfig] = None,
) -> str:
    """Join conditions with AND; an empty list yields an empty string"""
    return _build_where_clause(conditions, _Lookup(questions, responses), config or CompilerConfig())


def _build_where_clause(conditions: Sequence[SQLCondition], lookup: _Lookup, config: CompilerConfig) -> str:
    if not conditions:
        return ""

    clauses: List[str] = []
    for condition in conditions:
        column = _check(condition.column_name, "WHERE column name", config)
        value = _resolve_condition_value(condition, lookup, config)
        operator = enum_value(condition.operator)

        if operator == ConditionOperator.IN.value:
            clauses.append(f"{column} IN ({value})")
        else:
            clauses.append(f"{column} {SQL_OPERATORS.get(operator, '=')} {value}")

    return f"WHERE {' AND '.join(clauses)}"


def should_run_operation(
    operation: SQLOperation,
    responses: Sequence[Response],
    config: Optional[VisibilityConfig] = None,
) -> bool:
    """
    Evaluate the operation's run gate.

    The gate decides whether a statement is emitted at all; it never
    changes the WHERE text. No run conditions means always run.
    """
    if not operation.run_conditions:
        return True

    results = [evaluate_condition(logic, responses, config) for logic in operation.run_conditions]
    if (operation.run_condition_logic or "AND").upper() == "OR":
        return any(results)
    return all(results)


def _compile_insert(operation: SQLOperation, lookup: _Lookup, config: CompilerConfig) -> str:
    table = _check(operation.table_name, "table name", config)
    columns: List[str] = []
    values: List[str] = []

    for mapping in operation.column_mappings:
        column = _check(mapping.column_name, "column name", config)
        question = lookup.questions.get(mapping.question_id)
        if question is None:
            continue
        columns.append(column)
        values.append(format_value(lookup.value_for(mapping.question_id), question.type, config.strict_numbers))

    return f"INSERT INTO {table} ({', '.join(columns)})\nVALUES ({', '.join(values)});"


def _compile_update(operation: SQLOperation, lookup: _Lookup, config: CompilerConfig) -> str:
    table = _check(operation.table_name, "table name", config)
    assignments: List[str] = []

    for mapping in operation.column_mappings:
        column = _check(mapping.column_name, "column name", config)
        question = lookup.questions.get(mapping.question_id)
        if question is None:
            continue
        value = format_value(lookup.value_for(mapping.question_id), question.type, config.strict_numbers)
        assignments.append(f"{column} = {value}")

    where = _build_where_clause(operation.conditions, lookup, config)
    return f"UPDATE {table}\nSET {', '.join(assignments)}\n{where};"


def _compile_delete(operation: SQLOperation, lookup: _Lookup, config: CompilerConfig) -> str:
    table = _check(operation.table_name, "table name", config)
    where = _build_where_clause(operation.conditions, lookup, config)
    return f"DELETE FROM {table}\n{where};"


_COMPILERS = {
    OperationType.INSERT.value: _compile_insert,
    OperationType.UPDATE.value: _compile_update,
    OperationType.DELETE.value: _compile_delete,
}


def compile_operation(
    operation: SQLOperation,
    responses: Sequence[Response],
    questions: Sequence[Question],
    config: Optional[CompilerConfig] = None,
) -> str:
    """
    Compile one operation to a single statement.

    Raises:
        IdentifierError: when identifier validation is on and a table or
            column name is unsafe
    """
    return _compile_operation(operation, _Lookup(questions, responses), config or CompilerConfig())


def _compile_operation(operation: SQLOperation, lookup: _Lookup, config: CompilerConfig) -> str:
    compiler = _COMPILERS.get(enum_value(operation.operation_type))
    if compiler is None:
        logger.warning(
            f"Operation {operation.id} has unsupported type {enum_value(operation.operation_type)!r}"
        )
        return ""
    return compiler(operation, lookup, config)


def compile_operations(
    operations: Sequence[SQLOperation],
    responses: Sequence[Response],
    questions: Sequence[Question],
    config: Optional[CompilerConfig] = None,
    visibility: Optional[VisibilityConfig] = None,
) -> str:
    """
    Compile operations into SQL text.

    Operations run in ascending ``order`` (stable for ties); mappings and
    conditions keep their array order. Operations whose run gate fails
    are left out.

    Args:
        operations: Operations authored for the flow
        responses: Answers collected in the submission
        questions: Question metadata (declared types drive formatting)
        config: Compiler options
        visibility: Options for evaluating run gates

    Returns:
        Statements joined by a blank line
    """
    config = config or CompilerConfig()
    start_time = time.time()
    lookup = _Lookup(questions, responses)

    with log_operation(logger, "compile_operations", operations=len(operations)) as ctx:
        statements: List[str] = []
        gated = 0
        for operation in sorted(operations, key=lambda op: op.order):
            if not should_run_operation(operation, responses, visibility):
                logger.debug(f"Run gate closed for operation {operation.id}")
                gated += 1
                continue
            statements.append(_compile_operation(operation, lookup, config))
        ctx['statements'] = len(statements)

    FormSQLMetrics.record_compile(time.time() - start_time, len(statements), gated)
    return config.statement_separator.join(statements)


def compile_legacy_insert(
    table_name: str,
    questions: Sequence[Question],
    responses: Sequence[Response],
    config: Optional[CompilerConfig] = None,
) -> str:
    """Single INSERT straight from question column names; unanswered optional questions are skipped"""
    config = config or CompilerConfig()
    lookup = _Lookup(questions, responses)
    table = _check(table_name, "table name", config)
    columns: List[str] = []
    values: List[str] = []

    for question in questions:
        column = _check(question.sql_column_name, "column name", config)
        response = lookup.responses.get(question.id)
        if response is None and not question.required:
            continue
        columns.append(column)
        values.append(format_value(
            response.value if response is not None else None,
            question.type,
            config.strict_numbers,
        ))

    return f"INSERT INTO {table} ({', '.join(columns)})\nVALUES ({', '.join(values)});"


def compile_flow(
    flow: Flow,
    responses: Sequence[Response],
    config: Optional[CompilerConfig] = None,
    visibility: Optional[VisibilityConfig] = None,
) -> str:
    """Compile a flow's operations, falling back to legacy single-table mode when it has none"""
    with log_context(flow_id=flow.id):
        if flow.sql_operations:
            return compile_operations(flow.sql_operations, responses, flow.questions, config, visibility)
        logger.debug(f"Flow {flow.id} has no operations; using legacy insert into {flow.table_name}")
        return compile_legacy_insert(flow.table_name, flow.questions, responses, config)


def compile_submission(
    submission: Submission,
    flow: Flow,
    config: Optional[CompilerConfig] = None,
    visibility: Optional[VisibilityConfig] = None,
) -> str:
    with log_context(submission_id=submission.id):
        return compile_flow(flow, submission.responses, config, visibility)

"""
FormSQL
=======

Turns CREATE TABLE statements into conversational form questions and
compiles the answers collected by a flow into INSERT, UPDATE and DELETE
statements.

Features:
- DDL parsing with question type inference from column types and CHECK lists
- Conditional question visibility
- Type-aware SQL value formatting with string escaping
- Multi-operation compilation with WHERE conditions and run gates
- Identifier validation and advisory safety guardrails
- Sanitising of AI-proposed questions, operations and SQL

Quick Start:
------------

    from formsql import parse_ddl, compile_operations, Response

    tables = parse_ddl('''
        CREATE TABLE apps (
            app_name VARCHAR(100) NOT NULL,
            is_active BOOLEAN
        );
    ''')
    table = tables[0]

    responses = [
        Response(question_id=table.questions[0].id, value="Acme"),
        Response(question_id=table.questions[1].id, value=True),
    ]
    sql = compile_operations([table.suggested_operation], responses, table.questions)

Flows From Files:
-----------------

    from formsql import load_flow, load_responses, compile_flow, scan_dangerous_sql

    flow = load_flow("flow.yaml")
    sql = compile_flow(flow, load_responses("responses.json"))
    print(scan_dangerous_sql(sql).warnings)
"""

__version__ = "1.0.0"
__author__ = "FormSQL Team"

# Configuration
from .config import (
    LogLevel,
    CompilerConfig,
    VisibilityConfig,
    GuardrailConfig,
    SystemConfig,
)

# Data model
from .schemas import (
    QuestionType,
    ConditionalOperator,
    ValidationRuleType,
    ConditionOperator,
    ConditionValueType,
    OperationType,
    SubmissionStatus,
    ConditionalLogic,
    ValidationRule,
    Question,
    SQLCondition,
    ColumnMapping,
    SQLOperation,
    Response,
    ColumnDefinition,
    ParsedTable,
    Flow,
    Submission,
)

# DDL
from .ddl import parse_ddl, infer_question_type

# Flow
from .flow import (
    evaluate_condition,
    is_visible,
    get_next_question,
    visible_questions,
    validate_answer,
    validate_submission,
    load_flow,
    load_responses,
)

# Compiler
from .compiler import (
    escape_sql_string,
    format_value,
    compile_operations,
    compile_operation,
    compile_flow,
    compile_submission,
    compile_legacy_insert,
)

# Guardrails
from .guardrails import (
    validate_identifier,
    ensure_identifier,
    scan_dangerous_sql,
    validate_operations,
    check_operation_identifiers,
    extract_json_payload,
    sanitize_questions,
    sanitize_operations,
    extract_sql_from_response,
)

# Schema context
from .schema_context import SchemaContext, load_user_tables

# Utilities
from .utils import (
    setup_logging,
    get_logger,
    FormSQLError,
    IdentifierError,
    ValueFormatError,
    FlowDefinitionError,
    AIOutputError,
    ConfigurationError,
)

__all__ = [
    "__version__",
    # Config
    "LogLevel",
    "CompilerConfig",
    "VisibilityConfig",
    "GuardrailConfig",
    "SystemConfig",
    # Data model
    "QuestionType",
    "ConditionalOperator",
    "ValidationRuleType",
    "ConditionOperator",
    "ConditionValueType",
    "OperationType",
    "SubmissionStatus",
    "ConditionalLogic",
    "ValidationRule",
    "Question",
    "SQLCondition",
    "ColumnMapping",
    "SQLOperation",
    "Response",
    "ColumnDefinition",
    "ParsedTable",
    "Flow",
    "Submission",
    # DDL
    "parse_ddl",
    "infer_question_type",
    # Flow
    "evaluate_condition",
    "is_visible",
    "get_next_question",
    "visible_questions",
    "validate_answer",
    "validate_submission",
    "load_flow",
    "load_responses",
    # Compiler
    "escape_sql_string",
    "format_value",
    "compile_operations",
    "compile_operation",
    "compile_flow",
    "compile_submission",
    "compile_legacy_insert",
    # Guardrails
    "validate_identifier",
    "ensure_identifier",
    "scan_dangerous_sql",
    "validate_operations",
    "check_operation_identifiers",
    "extract_json_payload",
    "sanitize_questions",
    "sanitize_operations",
    "extract_sql_from_response",
    # Schema context
    "SchemaContext",
    "load_user_tables",
    # Utilities
    "setup_logging",
    "get_logger",
    "FormSQLError",
    "IdentifierError",
    "ValueFormatError",
    "FlowDefinitionError",
    "AIOutputError",
    "ConfigurationError",
]

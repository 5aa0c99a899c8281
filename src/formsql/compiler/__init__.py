"""
Compiler Package for FormSQL
"""
from .formatter import (
    escape_sql_string,
    quote_sql_string,
    format_value,
    parse_date,
)
from .sql_compiler import (
    compile_operations,
    compile_operation,
    compile_flow,
    compile_submission,
    compile_legacy_insert,
    build_where_clause,
    resolve_condition_value,
    should_run_operation,
)

__all__ = [
    "escape_sql_string",
    "quote_sql_string",
    "format_value",
    "parse_date",
    "compile_operations",
    "compile_operation",
    "compile_flow",
    "compile_submission",
    "compile_legacy_insert",
    "build_where_clause",
    "resolve_condition_value",
    "should_run_operation",
]

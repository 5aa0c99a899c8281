"""
FormSQL command line interface

    formsql parse tables.sql [--format json|markdown]
    formsql compile flow.yaml responses.json [--allow-incomplete] [--pretty]
    formsql scan statements.sql
    formsql check flow.yaml
    formsql sanitize questions|operations ai_response.txt

Results go to stdout; logs and guardrail warnings go to stderr.
"""
from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Optional, Sequence

from .compiler import compile_flow
from .config import SystemConfig
from .ddl import parse_ddl
from .flow import load_flow, load_responses, validate_submission
from .guardrails import (
    check_operation_identifiers,
    extract_json_payload,
    format_sql,
    sanitize_operations,
    sanitize_questions,
    scan_dangerous_sql,
    split_statements,
    validate_operations,
)
from .schema_context import SchemaContext
from .utils import FormSQLError, format_error_for_display, get_logger, get_metrics_collector, setup_logging

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_FLAGGED = 2


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def cmd_parse(args: argparse.Namespace, config: SystemConfig) -> int:
    tables = parse_ddl(_read_text(args.ddl_file))
    if not tables:
        print("No CREATE TABLE statements found", file=sys.stderr)
        return EXIT_FAILED

    if args.format == "markdown":
        print(SchemaContext.from_parsed_tables(tables).to_markdown(), end="")
    else:
        _print_json([t.to_dict() for t in tables])
    return EXIT_OK


def cmd_compile(args: argparse.Namespace, config: SystemConfig) -> int:
    flow = load_flow(args.flow_file)
    responses = load_responses(args.responses_file)

    check = validate_submission(responses, flow, config.visibility)
    if not check.is_valid:
        for label in check.missing_questions:
            print(f"Missing answer: {label}", file=sys.stderr)
        if not args.allow_incomplete:
            return EXIT_FAILED

    sql = compile_flow(flow, responses, config.compiler, config.visibility)
    for warning in scan_dangerous_sql(sql).warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    print(format_sql(sql) if args.pretty else sql)
    return EXIT_OK


def cmd_scan(args: argparse.Namespace, config: SystemConfig) -> int:
    statements = split_statements(_read_text(args.sql_file))
    report = []
    flagged = False
    for statement in statements:
        scan = scan_dangerous_sql(statement)
        flagged = flagged or scan.dangerous
        report.append({"statement": statement, **scan.to_dict()})

    _print_json(report)
    return EXIT_FLAGGED if flagged else EXIT_OK


def cmd_check(args: argparse.Namespace, config: SystemConfig) -> int:
    flow = load_flow(args.flow_file)
    safety = validate_operations(flow.sql_operations)
    identifier_errors = check_operation_identifiers(
        flow.sql_operations,
        config.guardrails.extra_reserved_keywords,
    )

    _print_json({**safety.to_dict(), "identifier_errors": identifier_errors})
    if identifier_errors:
        return EXIT_FAILED
    return EXIT_OK if safety.safe else EXIT_FLAGGED


def cmd_sanitize(args: argparse.Namespace, config: SystemConfig) -> int:
    payload = extract_json_payload(_read_text(args.response_file), config.guardrails.max_repair_attempts)
    keywords = config.guardrails.extra_reserved_keywords

    if args.kind == "questions":
        items, warnings = sanitize_questions(payload, keywords)
    else:
        items, warnings = sanitize_operations(payload, keywords)

    for warning in warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    _print_json([item.to_dict() for item in items])
    return EXIT_FLAGGED if warnings else EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="formsql", description="Compile form flows into SQL")
    parser.add_argument("--env-file", help="Load FORMSQL_* settings from this .env file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override FORMSQL_LOG_LEVEL",
    )
    parser.add_argument("--log-json", action="store_true", help="Emit JSON log lines")

    sub = parser.add_subparsers(dest="command", required=True)

    p_parse = sub.add_parser("parse", help="Turn CREATE TABLE statements into questions")
    p_parse.add_argument("ddl_file", help="DDL file, or - for stdin")
    p_parse.add_argument("--format", choices=["json", "markdown"], default="json")
    p_parse.set_defaults(handler=cmd_parse)

    p_compile = sub.add_parser("compile", help="Compile a flow and its responses into SQL")
    p_compile.add_argument("flow_file")
    p_compile.add_argument("responses_file")
    p_compile.add_argument(
        "--allow-incomplete",
        action="store_true",
        help="Compile even when required questions are unanswered",
    )
    p_compile.add_argument("--pretty", action="store_true", help="Reformat the SQL for reading")
    p_compile.set_defaults(handler=cmd_compile)

    p_scan = sub.add_parser("scan", help="Flag destructive statements in SQL text")
    p_scan.add_argument("sql_file", help="SQL file, or - for stdin")
    p_scan.set_defaults(handler=cmd_scan)

    p_check = sub.add_parser("check", help="Check a flow's operations before they run")
    p_check.add_argument("flow_file")
    p_check.set_defaults(handler=cmd_check)

    p_sanitize = sub.add_parser("sanitize", help="Validate questions or operations proposed by an AI model")
    p_sanitize.add_argument("kind", choices=["questions", "operations"])
    p_sanitize.add_argument("response_file", help="Raw model response, or - for stdin")
    p_sanitize.set_defaults(handler=cmd_sanitize)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = SystemConfig.from_env(args.env_file)
    except FormSQLError as e:
        print(format_error_for_display(e), file=sys.stderr)
        return EXIT_FAILED

    setup_logging(
        level=args.log_level or config.log_level,
        json_format=args.log_json or config.log_json,
    )
    collector = get_metrics_collector()
    if config.metrics_enabled:
        collector.enable()
    else:
        collector.disable()

    try:
        return args.handler(args, config)
    except FormSQLError as e:
        logger.debug(f"Command {args.command} failed", exc_info=True)
        print(format_error_for_display(e), file=sys.stderr)
        return EXIT_FAILED
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())

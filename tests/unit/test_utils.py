"""
Unit Tests for Logging, Metrics and Errors
"""
import json
import logging
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from formsql.compiler import compile_operations
from formsql.ddl import parse_ddl
from formsql.guardrails import ensure_identifier, scan_dangerous_sql
from formsql.schemas import ConditionalLogic, OperationType, SQLOperation
from formsql.utils import (
    ConfigurationError,
    FlowDefinitionError,
    IdentifierError,
    clear_context,
    format_error_for_display,
    get_correlation_id,
    get_logger,
    get_metrics_collector,
    log_context,
    log_operation,
    set_correlation_id,
)
from formsql.utils.logging import StructuredFormatter


@pytest.fixture
def metrics():
    collector = get_metrics_collector()
    collector.enable()
    collector.reset()
    yield collector
    collector.reset()
    collector.enable()


class TestLogContext:
    """Tests for thread-local logging context"""

    def teardown_method(self):
        clear_context()

    def test_correlation_id(self):
        cid = set_correlation_id()
        assert get_correlation_id() == cid
        clear_context()
        assert get_correlation_id() is None

    def test_nested_context_restored(self):
        with log_context(flow_id="outer"):
            with log_context(flow_id="inner", submission_id="s1"):
                record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
                data = json.loads(StructuredFormatter().format(record))
                assert data["flow_id"] == "inner"
                assert data["submission_id"] == "s1"

            record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
            data = json.loads(StructuredFormatter().format(record))
            assert data["flow_id"] == "outer"
            assert "submission_id" not in data

    def test_log_operation_reraises(self):
        logger = get_logger("formsql.test")
        with pytest.raises(RuntimeError):
            with log_operation(logger, "explode") as ctx:
                raise RuntimeError("boom")
        assert ctx["status"] == "error"
        assert ctx["error_type"] == "RuntimeError"

    def test_log_operation_success(self):
        logger = get_logger("formsql.test")
        with log_operation(logger, "work", items=2) as ctx:
            pass
        assert ctx["status"] == "success"
        assert ctx["items"] == 2
        assert "duration_ms" in ctx


class TestMetrics:
    """Tests for the metrics side channel"""

    def test_ddl_parse_recorded(self, metrics):
        parse_ddl("CREATE TABLE a (x TEXT, PRIMARY KEY (x)); CREATE TABLE b (y TEXT)")
        assert metrics.get_counter("ddl_tables_parsed_total") == 2
        assert metrics.get_counter("ddl_clauses_skipped_total") == 1
        assert "ddl_parse_duration" in metrics.get_metrics()["timers"]

    def test_guardrail_labels(self, metrics):
        scan_dangerous_sql("DROP TABLE x")
        scan_dangerous_sql("INSERT INTO x (a) VALUES (1)")
        assert metrics.get_counter("guardrail_checks_total", {"check": "sql_scan", "flagged": "true"}) == 1
        assert metrics.get_counter("guardrail_checks_total", {"check": "sql_scan", "flagged": "false"}) == 1

    def test_compile_recorded(self, metrics):
        gated = SQLOperation(
            id="op",
            operation_type=OperationType.DELETE,
            table_name="t",
            run_conditions=[ConditionalLogic("q", "equals", "yes")],
        )
        compile_operations([gated], [], [])
        assert metrics.get_counter("sql_statements_compiled_total") == 0
        assert metrics.get_counter("sql_operations_gated_total") == 1

    def test_identifier_rejection_recorded(self, metrics):
        with pytest.raises(IdentifierError):
            ensure_identifier("drop", "table name")
        assert metrics.get_counter("identifier_rejections_total", {"reason": "reserved keyword"}) == 1

    def test_disabled_collector(self, metrics):
        metrics.disable()
        scan_dangerous_sql("DROP TABLE x")
        assert metrics.get_metrics()["counters"] == {}

    def test_export_json(self, metrics):
        metrics.counter("things", 3)
        assert json.loads(metrics.export_json())["counters"]["things"] == 3


class TestErrors:
    """Tests for the error hierarchy"""

    def test_str_includes_category(self):
        error = FlowDefinitionError("bad file", source="flow.yaml")
        assert str(error) == "[flow_definition] bad file"
        assert error.recoverable is False
        assert "Review the contents of flow.yaml" in error.suggestions

    def test_display(self):
        cause = ValueError("nope")
        error = ConfigurationError("Invalid setting", config_key="FORMSQL_LOG_LEVEL", original_error=cause)
        text = format_error_for_display(error)
        assert "Error Type: ConfigurationError" in text
        assert "Category: configuration" in text
        assert "  - Check configuration for key: FORMSQL_LOG_LEVEL" in text
        assert "Original Error: nope" in text

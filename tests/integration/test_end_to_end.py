"""
Integration Tests for the Form-to-SQL Pipeline
DDL import -> flow authoring -> answering -> compiling -> guardrails
"""
import json
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from formsql import (
    ConditionalLogic,
    ConditionalOperator,
    ConditionOperator,
    ConditionValueType,
    Flow,
    IdentifierError,
    OperationType,
    Response,
    SQLCondition,
    SQLOperation,
    SystemConfig,
    check_operation_identifiers,
    compile_flow,
    extract_json_payload,
    parse_ddl,
    sanitize_operations,
    sanitize_questions,
    scan_dangerous_sql,
    validate_operations,
    validate_submission,
)
from formsql.flow import get_next_question, visible_count
from formsql.guardrails import split_statements


DDL = """
CREATE TABLE customers (
    customer_id INTEGER PRIMARY KEY,
    full_name VARCHAR(120) NOT NULL,
    email VARCHAR(255) NOT NULL,
    plan TEXT CHECK (plan IN ('free', 'pro', 'enterprise')),
    seats INT,
    renews_on DATE,
    newsletter BOOLEAN,
    CONSTRAINT uq_email UNIQUE (email)
);
"""


def answer(flow, responses, values):
    """Walk the flow the way the chat UI does, answering each visible question"""
    index = 0
    while True:
        question = get_next_question(flow.questions, index, responses)
        if question is None:
            return responses
        if question.id in values:
            responses.append(Response(question.id, values[question.id]))
        index = flow.questions.index(question) + 1


class TestDDLToSQL:
    """A table is imported, answered and compiled"""

    @pytest.fixture
    def flow(self):
        table = parse_ddl(DDL)[0]
        questions = table.questions
        by_column = {q.sql_column_name: q for q in questions}

        # seats only matters for paid plans
        by_column["seats"].conditional_logic = ConditionalLogic(
            by_column["plan"].id, ConditionalOperator.NOT_EQUALS, "free"
        )
        return Flow(
            id="customer-signup",
            name="Customer signup",
            questions=questions,
            sql_operations=[table.suggested_operation],
            table_name=table.table_name,
        )

    def test_paid_plan(self, flow):
        q = {q.sql_column_name: q.id for q in flow.questions}
        responses = answer(flow, [], {
            q["full_name"]: "Siobhán O'Neill",
            q["email"]: "s@example.com",
            q["plan"]: "pro",
            q["seats"]: 12,
            q["renews_on"]: "2025-01-31T00:00:00Z",
            q["newsletter"]: "yes",
        })

        assert visible_count(flow.questions, responses) == 6
        assert validate_submission(responses, flow).is_valid

        sql = compile_flow(flow, responses)
        assert sql == (
            "INSERT INTO CUSTOMERS (full_name, email, plan, seats, renews_on, newsletter)\n"
            "VALUES ('Siobhán O''Neill', 's@example.com', 'pro', 12, '2025-01-31', 1);"
        )
        assert validate_operations(flow.sql_operations).safe
        assert scan_dangerous_sql(sql).dangerous is False

    def test_free_plan_hides_seats(self, flow):
        q = {q.sql_column_name: q.id for q in flow.questions}
        responses = answer(flow, [], {
            q["full_name"]: "Ana",
            q["email"]: "ana@example.com",
            q["plan"]: "free",
            q["seats"]: 99,
        })

        assert q["seats"] not in [r.question_id for r in responses]
        sql = compile_flow(flow, responses)
        assert "VALUES ('Ana', 'ana@example.com', 'free', NULL, NULL, NULL);" in sql

    def test_missing_required(self, flow):
        q = {q.sql_column_name: q.id for q in flow.questions}
        check = validate_submission([Response(q["full_name"], "Ana")], flow)
        assert check.missing_questions == ["Email"]


class TestMultiOperationFlow:
    """Insert plus conditional update plus guarded delete"""

    @pytest.fixture
    def flow(self):
        return Flow.from_dict({
            "id": "offboarding",
            "name": "Offboarding",
            "questions": [
                {"id": "emp", "type": "number", "label": "Employee id", "sqlColumnName": "employee_id"},
                {"id": "reason", "type": "text", "label": "Reason", "sqlColumnName": "reason"},
                {"id": "purge", "type": "yes-no", "label": "Purge badges?", "sqlColumnName": "purge"},
            ],
            "sqlOperations": [
                {
                    "id": "delete-badges",
                    "operationType": "DELETE",
                    "tableName": "badges",
                    "order": 2,
                    "conditions": [
                        {"columnName": "employee_id", "operator": "equals",
                         "value": "${emp}", "valueType": "question"},
                    ],
                    "runConditions": [{"questionId": "purge", "operator": "equals", "value": "true"}],
                },
                {
                    "id": "log",
                    "operationType": "INSERT",
                    "tableName": "offboarding_log",
                    "order": 0,
                    "columnMappings": [
                        {"questionId": "emp", "columnName": "employee_id"},
                        {"questionId": "reason", "columnName": "reason"},
                    ],
                },
                {
                    "id": "deactivate",
                    "operationType": "UPDATE",
                    "tableName": "employees",
                    "order": 1,
                    "columnMappings": [{"questionId": "reason", "columnName": "exit_reason"}],
                    "conditions": [
                        {"columnName": "id", "operator": "equals", "value": "${emp}", "valueType": "question"},
                        {"columnName": "status", "operator": "not-equals", "value": "terminated"},
                    ],
                },
            ],
        })

    def test_all_operations(self, flow):
        responses = [Response("emp", 42), Response("reason", "Moved on"), Response("purge", True)]
        sql = compile_flow(flow, responses)

        assert split_statements(sql) == [
            "INSERT INTO offboarding_log (employee_id, reason)\nVALUES (42, 'Moved on');",
            "UPDATE employees\nSET exit_reason = 'Moved on'\nWHERE id = 42 AND status != 'terminated';",
            "DELETE FROM badges\nWHERE employee_id = 42;",
        ]
        assert sql.count("\n\n") == 2

        safety = validate_operations(flow.sql_operations)
        assert safety.safe
        assert safety.warnings == ['Operation 1: DELETE operation detected on "badges"']

        scan = scan_dangerous_sql(sql)
        assert "DELETE FROM detected: verify WHERE clause" in scan.warnings
        assert "UPDATE detected: verify WHERE clause" in scan.warnings

    def test_run_gate_closed(self, flow):
        responses = [Response("emp", 42), Response("reason", "Moved on"), Response("purge", False)]
        sql = compile_flow(flow, responses)
        assert "DELETE" not in sql
        assert len(split_statements(sql)) == 2


class TestAIProposals:
    """AI output is sanitised before it reaches the compiler"""

    AI_RESPONSE = """```json
[
  {"operationType": "INSERT", "tableName": "tickets",
   "columnMappings": [{"questionId": "q1", "columnName": "title"}]},
  {"operationType": "DELETE", "tableName": "tickets",
   "columnMappings": [{"questionId": "q1", "columnName": "title"}]},
  {"operationType": "UPDATE", "tableName": "users; DROP TABLE users",
   "columnMappings": [{"questionId": "q1", "columnName": "x"}]},
  {"operationType": "INSERT", "tableName": "audit", "columnMappings": [{"questionId": "q1", "colu
```"""

    def test_sanitise_then_check(self):
        payload = extract_json_payload(self.AI_RESPONSE)
        assert len(payload) == 3

        operations, warnings = sanitize_operations(payload)
        assert [op.operation_type for op in operations] == [OperationType.INSERT, OperationType.DELETE]
        assert any("Invalid table name" in w for w in warnings)
        assert any(w.startswith("DANGER: DELETE") for w in warnings)

        safety = validate_operations(operations)
        assert not safety.safe
        assert safety.critical_warnings == [
            'Operation 2: DELETE without WHERE conditions will delete ALL rows in "tickets"'
        ]
        assert check_operation_identifiers(operations) == []

    def test_questions_from_ai(self):
        payload = extract_json_payload(json.dumps([
            {"type": "text", "label": "Title", "sqlColumnName": "title", "required": True},
            {"type": "rating", "label": "Stars", "sqlColumnName": "stars"},
        ]))
        questions, warnings = sanitize_questions(payload)
        flow = Flow(
            id="ai",
            name="AI flow",
            questions=questions,
            sql_operations=[SQLOperation(
                id="op",
                operation_type=OperationType.UPDATE,
                table_name="tickets",
                column_mappings=[],
                conditions=[SQLCondition("title", ConditionOperator.LIKE, "%bug%", ConditionValueType.STATIC)],
            )],
        )
        assert len(questions) == 1
        assert warnings == ['Question 2: Invalid type "rating" - skipped']
        assert compile_flow(flow, []) == "UPDATE tickets\nSET \nWHERE title LIKE '%bug%';"


class TestIdentifierBackstop:
    """Unsafe names hand-edited into a flow never reach SQL text"""

    def test_compile_rejects(self):
        flow = Flow.from_dict({
            "id": "bad",
            "name": "Bad",
            "questions": [{"id": "q", "type": "text", "label": "x", "sqlColumnName": "x"}],
            "sqlOperations": [{
                "id": "op",
                "operationType": "INSERT",
                "tableName": "t",
                "columnMappings": [{"questionId": "q", "columnName": "x) VALUES (1); DROP TABLE t; --"}],
            }],
        })
        with pytest.raises(IdentifierError):
            compile_flow(flow, [Response("q", "v")])

    def test_config_from_env_threads_through(self, monkeypatch):
        monkeypatch.setenv("FORMSQL_STRICT_NUMBERS", "true")
        config = SystemConfig.from_env()
        flow = Flow.from_dict({
            "id": "n",
            "name": "N",
            "questions": [{"id": "q", "type": "number", "label": "n", "sqlColumnName": "n"}],
            "sqlOperations": [{
                "id": "op",
                "operationType": "INSERT",
                "tableName": "t",
                "columnMappings": [{"questionId": "q", "columnName": "n"}],
            }],
        })
        assert compile_flow(flow, [Response("q", "7")], config.compiler) == "INSERT INTO t (n)\nVALUES (7);"

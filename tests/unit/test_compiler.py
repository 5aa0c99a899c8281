"""
Unit Tests for the SQL Operation Compiler
"""
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from formsql.compiler import (
    build_where_clause,
    compile_flow,
    compile_legacy_insert,
    compile_operation,
    compile_operations,
    compile_submission,
    resolve_condition_value,
    should_run_operation,
)
from formsql.config import CompilerConfig, SystemConfig
from formsql.schemas import (
    ColumnMapping,
    ConditionalLogic,
    ConditionalOperator,
    ConditionOperator,
    ConditionValueType,
    Flow,
    OperationType,
    Question,
    QuestionType,
    Response,
    SQLCondition,
    SQLOperation,
    Submission,
)
from formsql.utils import IdentifierError


@pytest.fixture
def questions():
    return [
        Question(id="Q1", type=QuestionType.TEXT, label="App name", sql_column_name="app_name"),
        Question(id="Q2", type=QuestionType.YES_NO, label="Active", sql_column_name="is_active"),
        Question(id="Q3", type=QuestionType.NUMBER, label="App id", sql_column_name="app_id"),
    ]


def insert_op(order=0, table="apps", op_id="op1"):
    return SQLOperation(
        id=op_id,
        operation_type=OperationType.INSERT,
        table_name=table,
        column_mappings=[
            ColumnMapping(question_id="Q1", column_name="app_name"),
            ColumnMapping(question_id="Q2", column_name="is_active"),
        ],
        order=order,
    )


class TestInsert:
    """Tests for INSERT compilation"""

    def test_end_to_end_example(self, questions):
        """Exact statement text for a text + yes-no mapping"""
        responses = [Response("Q1", "Acme"), Response("Q2", True)]
        sql = compile_operations([insert_op()], responses, questions)
        assert sql == "INSERT INTO apps (app_name, is_active)\nVALUES ('Acme', 1);"

    def test_missing_question_skips_mapping(self, questions):
        op = insert_op()
        op.column_mappings.append(ColumnMapping(question_id="ghost", column_name="ghost_col"))
        sql = compile_operation(op, [Response("Q1", "Acme"), Response("Q2", False)], questions)
        assert sql == "INSERT INTO apps (app_name, is_active)\nVALUES ('Acme', 0);"

    def test_missing_response_is_null(self, questions):
        sql = compile_operation(insert_op(), [Response("Q1", "Acme")], questions)
        assert sql == "INSERT INTO apps (app_name, is_active)\nVALUES ('Acme', NULL);"

    def test_one_question_many_columns(self, questions):
        op = SQLOperation(
            id="op",
            operation_type=OperationType.INSERT,
            table_name="apps",
            column_mappings=[
                ColumnMapping("Q1", "app_name"),
                ColumnMapping("Q1", "display_name"),
            ],
        )
        sql = compile_operation(op, [Response("Q1", "Acme")], questions)
        assert sql == "INSERT INTO apps (app_name, display_name)\nVALUES ('Acme', 'Acme');"

    def test_value_escaped(self, questions):
        sql = compile_operation(insert_op(), [Response("Q1", "O'Brien"), Response("Q2", "yes")], questions)
        assert "VALUES ('O''Brien', 1);" in sql


class TestUpdateAndDelete:
    """Tests for UPDATE and DELETE compilation"""

    def test_update_with_question_condition(self, questions):
        op = SQLOperation(
            id="op",
            operation_type=OperationType.UPDATE,
            table_name="apps",
            column_mappings=[ColumnMapping("Q1", "app_name")],
            conditions=[
                SQLCondition("app_id", ConditionOperator.EQUALS, "${Q3}", ConditionValueType.QUESTION),
            ],
        )
        sql = compile_operation(op, [Response("Q1", "Acme"), Response("Q3", 7)], questions)
        assert sql == "UPDATE apps\nSET app_name = 'Acme'\nWHERE app_id = 7;"

    def test_delete_with_static_conditions(self, questions):
        op = SQLOperation(
            id="op",
            operation_type=OperationType.DELETE,
            table_name="apps",
            conditions=[
                SQLCondition("status", ConditionOperator.EQUALS, "retired"),
                SQLCondition("owner", ConditionOperator.NOT_EQUALS, "O'Neil"),
            ],
        )
        sql = compile_operation(op, [], questions)
        assert sql == "DELETE FROM apps\nWHERE status = 'retired' AND owner != 'O''Neil';"

    def test_delete_without_conditions(self, questions):
        op = SQLOperation(id="op", operation_type=OperationType.DELETE, table_name="apps")
        assert compile_operation(op, [], questions) == "DELETE FROM apps\n;"

    def test_unknown_operation_type(self, questions):
        op = SQLOperation(id="op", operation_type="MERGE", table_name="apps")
        assert compile_operation(op, [], questions) == ""


class TestWhereClause:
    """Tests for WHERE rendering"""

    def test_empty(self, questions):
        assert build_where_clause([], [], questions) == ""

    @pytest.mark.parametrize("operator,rendered", [
        (ConditionOperator.EQUALS, "col = 'v'"),
        (ConditionOperator.NOT_EQUALS, "col != 'v'"),
        (ConditionOperator.GREATER_THAN, "col > 'v'"),
        (ConditionOperator.LESS_THAN, "col < 'v'"),
        (ConditionOperator.LIKE, "col LIKE 'v'"),
        (ConditionOperator.IN, "col IN ('v')"),
        ("between", "col = 'v'"),
    ])
    def test_operators(self, questions, operator, rendered):
        where = build_where_clause([SQLCondition("col", operator, "v")], [], questions)
        assert where == f"WHERE {rendered}"

    def test_question_value_uses_declared_type(self, questions):
        condition = SQLCondition("is_active", ConditionOperator.EQUALS, "${Q2}", ConditionValueType.QUESTION)
        assert resolve_condition_value(condition, [Response("Q2", "yes")], questions) == "1"

    @pytest.mark.parametrize("template,responses", [
        ("${Q9}", [Response("Q9", "x")]),   # question unknown
        ("${Q1}", []),                      # no response
        ("Q1", [Response("Q1", "x")]),      # not a template
    ])
    def test_unresolved_is_null(self, questions, template, responses):
        condition = SQLCondition("col", ConditionOperator.EQUALS, template, ConditionValueType.QUESTION)
        assert resolve_condition_value(condition, responses, questions) == "NULL"


class TestOrderingAndGates:
    """Tests for ordering, run gates and separators"""

    def test_sorted_by_order_stable(self, questions):
        ops = [
            insert_op(order=2, table="third"),
            insert_op(order=1, table="first"),
            insert_op(order=2, table="fourth"),
            insert_op(order=1, table="second"),
        ]
        sql = compile_operations(ops, [Response("Q1", "a"), Response("Q2", True)], questions)
        tables = [stmt.split()[2] for stmt in sql.split("\n\n")]
        assert tables == ["first", "second", "third", "fourth"]

    def test_run_gate_skips_operation(self, questions):
        gated = insert_op(order=1, table="audit")
        gated.run_conditions = [ConditionalLogic("Q2", ConditionalOperator.EQUALS, "true")]
        responses = [Response("Q1", "a"), Response("Q2", False)]

        sql = compile_operations([insert_op(), gated], responses, questions)
        assert "audit" not in sql
        assert sql.count(";") == 1

    def test_run_gate_or(self, questions):
        op = insert_op()
        op.run_conditions = [
            ConditionalLogic("Q1", ConditionalOperator.EQUALS, "nope"),
            ConditionalLogic("Q2", ConditionalOperator.EQUALS, "true"),
        ]
        responses = [Response("Q1", "a"), Response("Q2", True)]
        assert not should_run_operation(op, responses)

        op.run_condition_logic = "OR"
        assert should_run_operation(op, responses)

    def test_no_run_conditions_always_runs(self, questions):
        assert should_run_operation(insert_op(), [])

    def test_custom_separator(self, questions):
        config = CompilerConfig(statement_separator="\n")
        sql = compile_operations([insert_op(), insert_op(order=1)], [], questions, config)
        assert "\n\n" not in sql
        assert sql.count("INSERT INTO") == 2

    def test_empty_operations(self, questions):
        assert compile_operations([], [], questions) == ""


class TestIdentifierChecks:
    """Identifiers are validated before they reach SQL text"""

    def test_unsafe_table_rejected(self, questions):
        with pytest.raises(IdentifierError):
            compile_operation(insert_op(table="apps; DROP TABLE x"), [], questions)

    def test_unsafe_condition_column_rejected(self, questions):
        op = SQLOperation(
            id="op",
            operation_type=OperationType.DELETE,
            table_name="apps",
            conditions=[SQLCondition("1=1 OR id", ConditionOperator.EQUALS, "1")],
        )
        with pytest.raises(IdentifierError):
            compile_operation(op, [], questions)

    def test_validation_can_be_disabled(self, questions):
        config = CompilerConfig(validate_identifiers=False)
        sql = compile_operation(insert_op(table="app-registry"), [], questions, config)
        assert sql.startswith("INSERT INTO app-registry (")

    def test_configured_keywords_rejected(self, questions):
        config = CompilerConfig(extra_reserved_keywords=["apps"])
        with pytest.raises(IdentifierError):
            compile_operation(insert_op(), [], questions, config)

    def test_configured_keywords_from_env(self, questions, monkeypatch):
        monkeypatch.setenv("FORMSQL_RESERVED_KEYWORDS", "users")
        config = SystemConfig.from_env()
        with pytest.raises(IdentifierError):
            compile_operation(insert_op(table="users"), [Response("Q1", "a")], questions, config.compiler)


class TestLegacyAndFlow:
    """Tests for legacy single-table mode and flow entry points"""

    def test_legacy_skips_unanswered_optional(self, questions):
        questions[2].required = True
        sql = compile_legacy_insert("apps", questions, [Response("Q1", "Acme")])
        assert sql == "INSERT INTO apps (app_name, app_id)\nVALUES ('Acme', NULL);"

    def test_flow_without_operations_uses_legacy(self, questions):
        flow = Flow(id="f1", name="Apps", questions=questions, table_name="apps")
        sql = compile_flow(flow, [Response("Q1", "Acme"), Response("Q2", True), Response("Q3", 5)])
        assert sql == "INSERT INTO apps (app_name, is_active, app_id)\nVALUES ('Acme', 1, 5);"

    def test_flow_with_operations(self, questions):
        flow = Flow(id="f1", name="Apps", questions=questions, sql_operations=[insert_op()], table_name="ignored")
        sql = compile_flow(flow, [Response("Q1", "Acme"), Response("Q2", True)])
        assert sql.startswith("INSERT INTO apps ")

    def test_submission(self, questions):
        flow = Flow(id="f1", name="Apps", questions=questions, sql_operations=[insert_op()])
        submission = Submission(flow_id="f1", responses=[Response("Q1", "Acme"), Response("Q2", True)])
        assert compile_submission(submission, flow) == (
            "INSERT INTO apps (app_name, is_active)\nVALUES ('Acme', 1);"
        )

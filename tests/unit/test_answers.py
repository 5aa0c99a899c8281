"""
Unit Tests for Answer Validation
"""
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from formsql.flow import validate_answer, validate_submission
from formsql.schemas import (
    ConditionalLogic,
    ConditionalOperator,
    Flow,
    Question,
    QuestionType,
    Response,
    ValidationRule,
    ValidationRuleType,
)


def question(qtype=QuestionType.TEXT, required=False, rules=None, label="Name", qid="Q1", logic=None):
    return Question(
        id=qid,
        type=qtype,
        label=label,
        sql_column_name=qid.lower(),
        required=required,
        validation_rules=rules or [],
        conditional_logic=logic,
    )


class TestValidateAnswer:
    """Tests for validate_answer"""

    @pytest.mark.parametrize("blank", [None, "", "   ", []])
    def test_required_blank(self, blank):
        assert validate_answer(question(required=True), blank) == ["Name is required"]

    def test_required_rule_message(self):
        q = question(rules=[ValidationRule(ValidationRuleType.REQUIRED, message="Tell us your name")])
        assert validate_answer(q, "") == ["Tell us your name"]

    def test_optional_blank_skips_rules(self):
        q = question(rules=[ValidationRule(ValidationRuleType.MIN_LENGTH, 3)])
        assert validate_answer(q, "") == []

    @pytest.mark.parametrize("value", [False, 0])
    def test_falsy_answers_count(self, value):
        assert validate_answer(question(QuestionType.YES_NO, required=True), value) == []

    def test_length_rules(self):
        q = question(rules=[
            ValidationRule(ValidationRuleType.MIN_LENGTH, 3),
            ValidationRule(ValidationRuleType.MAX_LENGTH, 5),
        ])
        assert validate_answer(q, "ab") == ["Name must be at least 3 characters"]
        assert validate_answer(q, "abcdef") == ["Name must be at most 5 characters"]
        assert validate_answer(q, "abcd") == []

    def test_multi_select_length_counts_items(self):
        q = question(QuestionType.MULTI_SELECT, rules=[ValidationRule(ValidationRuleType.MAX_LENGTH, 2)])
        assert validate_answer(q, ["a", "b", "c"]) == ["Name must be at most 2 characters"]

    def test_pattern(self):
        q = question(rules=[ValidationRule(ValidationRuleType.PATTERN, r"^\d{3}-\d{4}$", "Use 555-1234")])
        assert validate_answer(q, "555-1234") == []
        assert validate_answer(q, "5551234") == ["Use 555-1234"]

    def test_invalid_pattern_ignored(self):
        q = question(rules=[ValidationRule(ValidationRuleType.PATTERN, "([")])
        assert validate_answer(q, "anything") == []

    def test_min_max(self):
        q = question(QuestionType.NUMBER, label="Age", rules=[
            ValidationRule(ValidationRuleType.MIN, 18),
            ValidationRule(ValidationRuleType.MAX, "120"),
        ])
        assert validate_answer(q, "17") == ["Age must be at least 18"]
        assert validate_answer(q, 121) == ["Age must be at most 120"]
        assert validate_answer(q, "42") == []

    def test_number_question_rejects_text(self):
        q = question(QuestionType.NUMBER, label="Age", rules=[ValidationRule(ValidationRuleType.MIN, 1)])
        assert validate_answer(q, "old") == ["Age must be a number"]


class TestValidateSubmission:
    """Tests for validate_submission"""

    @pytest.fixture
    def flow(self):
        return Flow(
            id="f1",
            name="Signup",
            questions=[
                question(qid="Q1", label="Has company", required=True, qtype=QuestionType.YES_NO),
                question(
                    qid="Q2",
                    label="Company",
                    required=True,
                    logic=ConditionalLogic("Q1", ConditionalOperator.EQUALS, "true"),
                ),
                question(qid="Q3", label="Nickname"),
            ],
        )

    def test_complete(self, flow):
        result = validate_submission([Response("Q1", True), Response("Q2", "Acme")], flow)
        assert result.is_valid
        assert result.missing_questions == []

    def test_hidden_required_question_not_expected(self, flow):
        result = validate_submission([Response("Q1", False)], flow)
        assert result.is_valid

    def test_missing_labels_listed(self, flow):
        result = validate_submission([Response("Q1", True)], flow)
        assert not result.is_valid
        assert result.missing_questions == ["Company"]
        assert result.to_dict() == {"is_valid": False, "missing_questions": ["Company"]}

    def test_nothing_answered(self, flow):
        result = validate_submission([], flow)
        assert result.missing_questions == ["Has company"]

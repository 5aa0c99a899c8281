"""
Conditional Visibility Evaluator
Decides which question is shown next given the answers collected so far
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from ..config import VisibilityConfig
from ..schemas import ConditionalLogic, ConditionalOperator, Question, Response
from ..schemas.models import enum_value, stringify_value
from ..utils import get_logger

logger = get_logger(__name__)


def _find_response(responses: Sequence[Response], question_id: str) -> Optional[Response]:
    for response in responses:
        if response.question_id == question_id:
            return response
    return None


def _as_float(text: str) -> Optional[float]:
    try:
        return float(text)
    except (TypeError, ValueError):
        return None


def evaluate_condition(
    logic: ConditionalLogic,
    responses: Sequence[Response],
    config: Optional[VisibilityConfig] = None,
) -> bool:
    """
    Test a single predicate against the referenced answer.

    An unanswered gating question never satisfies the predicate.
    """
    config = config or VisibilityConfig()
    response = _find_response(responses, logic.question_id)
    if response is None:
        return False

    actual = stringify_value(response.value).lower()
    expected = stringify_value(logic.value).lower()
    operator = enum_value(logic.operator)

    if operator == ConditionalOperator.EQUALS.value:
        return actual == expected
    if operator == ConditionalOperator.NOT_EQUALS.value:
        return actual != expected
    if operator == ConditionalOperator.CONTAINS.value:
        return expected in actual
    if operator in (ConditionalOperator.GREATER_THAN.value, ConditionalOperator.LESS_THAN.value):
        left, right = _as_float(actual), _as_float(expected)
        if left is None or right is None:
            return False
        if operator == ConditionalOperator.GREATER_THAN.value:
            return left > right
        return left < right

    logger.debug(f"Unknown visibility operator {operator!r} on {logic.question_id}")
    return config.unknown_operator_visible


def is_visible(
    question: Question,
    responses: Sequence[Response],
    config: Optional[VisibilityConfig] = None,
) -> bool:
    if question.conditional_logic is None:
        return True
    return evaluate_condition(question.conditional_logic, responses, config)


def get_next_question(
    questions: Sequence[Question],
    from_index: int,
    responses: Sequence[Response],
    config: Optional[VisibilityConfig] = None,
) -> Optional[Question]:
    """Return the first visible question at or after ``from_index``; None means the flow is complete"""
    for index in range(max(from_index, 0), len(questions)):
        if is_visible(questions[index], responses, config):
            return questions[index]
    return None


def visible_questions(
    questions: Sequence[Question],
    responses: Sequence[Response],
    config: Optional[VisibilityConfig] = None,
) -> List[Question]:
    return [q for q in questions if is_visible(q, responses, config)]


def visible_count(
    questions: Sequence[Question],
    responses: Sequence[Response],
    config: Optional[VisibilityConfig] = None,
) -> int:
    """Count currently visible questions; recompute whenever an answer is added"""
    return len(visible_questions(questions, responses, config))

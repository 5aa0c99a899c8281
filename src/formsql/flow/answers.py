"""
Answer Validation
Applies question validation rules and checks a submission for missing required answers
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..config import VisibilityConfig
from ..schemas import (
    Flow,
    Question,
    QuestionType,
    Response,
    ResponseValue,
    ValidationRule,
    ValidationRuleType,
)
from ..schemas.models import enum_value, stringify_value
from ..utils import get_logger
from .visibility import is_visible

logger = get_logger(__name__)


@dataclass
class SubmissionCheck:
    """Outcome of checking a submission for completeness"""
    is_valid: bool
    missing_questions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "missing_questions": self.missing_questions,
        }


def is_blank(value: ResponseValue) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _length(value: ResponseValue) -> int:
    if isinstance(value, (list, tuple)):
        return len(value)
    return len(stringify_value(value))


def _check_rule(rule: ValidationRule, question: Question, value: ResponseValue) -> Optional[str]:
    """Return an error message when ``value`` breaks ``rule``"""
    rule_type = enum_value(rule.type)
    label = question.label

    if rule_type == ValidationRuleType.MIN_LENGTH.value:
        limit = _to_number(rule.value)
        if limit is not None and _length(value) < limit:
            return rule.message or f"{label} must be at least {int(limit)} characters"

    elif rule_type == ValidationRuleType.MAX_LENGTH.value:
        limit = _to_number(rule.value)
        if limit is not None and _length(value) > limit:
            return rule.message or f"{label} must be at most {int(limit)} characters"

    elif rule_type == ValidationRuleType.PATTERN.value:
        if rule.value is None:
            return None
        try:
            matched = re.search(str(rule.value), stringify_value(value))
        except re.error as e:
            logger.warning(f"Ignoring invalid pattern on {question.id}: {e}")
            return None
        if not matched:
            return rule.message or f"{label} is not in the expected format"

    elif rule_type in (ValidationRuleType.MIN.value, ValidationRuleType.MAX.value):
        limit = _to_number(rule.value)
        number = _to_number(value)
        if limit is None:
            return None
        if number is None:
            return rule.message or f"{label} must be a number"
        if rule_type == ValidationRuleType.MIN.value and number < limit:
            return rule.message or f"{label} must be at least {stringify_value(limit)}"
        if rule_type == ValidationRuleType.MAX.value and number > limit:
            return rule.message or f"{label} must be at most {stringify_value(limit)}"

    return None


def validate_answer(question: Question, value: ResponseValue) -> List[str]:
    """
    Check one answer against its question.

    Every rule is independent; all failures are reported. Blank answers to
    optional questions skip the remaining rules.
    """
    errors: List[str] = []
    required_rule = next(
        (r for r in question.validation_rules if enum_value(r.type) == ValidationRuleType.REQUIRED.value),
        None,
    )

    if is_blank(value):
        if question.required or required_rule is not None:
            message = required_rule.message if required_rule and required_rule.message else None
            errors.append(message or f"{question.label} is required")
        return errors

    if enum_value(question.type) == QuestionType.NUMBER.value and _to_number(value) is None:
        errors.append(f"{question.label} must be a number")
        return errors

    for rule in question.validation_rules:
        if enum_value(rule.type) == ValidationRuleType.REQUIRED.value:
            continue
        error = _check_rule(rule, question, value)
        if error:
            errors.append(error)

    return errors


def validate_submission(
    responses: Sequence[Response],
    flow: Flow,
    config: Optional[VisibilityConfig] = None,
) -> SubmissionCheck:
    """
    List required questions that still lack an answer.

    Questions hidden by conditional logic are not expected to be answered.
    ``False`` and ``0`` count as answers.
    """
    answers = {}
    for response in responses:
        answers.setdefault(response.question_id, response.value)

    missing: List[str] = []
    for question in flow.questions:
        if not question.required:
            continue
        if not is_visible(question, responses, config):
            continue
        # False and 0 are real answers to yes-no and number questions
        if is_blank(answers.get(question.id)):
            missing.append(question.label)

    return SubmissionCheck(is_valid=not missing, missing_questions=missing)

"""
Flow Package for FormSQL
"""
from .visibility import (
    evaluate_condition,
    is_visible,
    get_next_question,
    visible_questions,
    visible_count,
)
from .answers import (
    SubmissionCheck,
    validate_answer,
    validate_submission,
)
from .loader import (
    load_flow,
    load_responses,
    flow_from_dict,
    responses_from_data,
)

__all__ = [
    "evaluate_condition",
    "is_visible",
    "get_next_question",
    "visible_questions",
    "visible_count",
    "SubmissionCheck",
    "validate_answer",
    "validate_submission",
    "load_flow",
    "load_responses",
    "flow_from_dict",
    "responses_from_data",
]

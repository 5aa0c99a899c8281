"""
Schemas Package for FormSQL
"""
from .models import (
    ResponseValue,
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
    coerce_enum,
    stringify_value,
    new_id,
)

__all__ = [
    "ResponseValue",
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
    "coerce_enum",
    "stringify_value",
    "new_id",
]

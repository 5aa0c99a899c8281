"""
Schema Definitions for FormSQL
Defines the question, operation and response records shared by every component
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Type, Union
import math
import uuid


ResponseValue = Union[str, int, float, bool, List[str], None]


class QuestionType(str, Enum):
    """Closed set of question widgets"""
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    NUMBER = "number"
    DATE = "date"
    SINGLE_SELECT = "single-select"
    MULTI_SELECT = "multi-select"
    YES_NO = "yes-no"


class ConditionalOperator(str, Enum):
    """Operators usable in question visibility logic"""
    EQUALS = "equals"
    NOT_EQUALS = "not-equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater-than"
    LESS_THAN = "less-than"


class ValidationRuleType(str, Enum):
    """Answer validation rule kinds"""
    REQUIRED = "required"
    MIN_LENGTH = "min-length"
    MAX_LENGTH = "max-length"
    PATTERN = "pattern"
    MIN = "min"
    MAX = "max"


class ConditionOperator(str, Enum):
    """Operators usable in WHERE conditions"""
    EQUALS = "equals"
    NOT_EQUALS = "not-equals"
    GREATER_THAN = "greater-than"
    LESS_THAN = "less-than"
    LIKE = "like"
    IN = "in"


class ConditionValueType(str, Enum):
    """Where a WHERE condition takes its value from"""
    STATIC = "static"
    QUESTION = "question"


class OperationType(str, Enum):
    """SQL statement kinds a flow can emit"""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class SubmissionStatus(str, Enum):
    """Lifecycle of a submission"""
    PENDING = "pending"
    EXECUTED = "executed"
    FAILED = "failed"


def new_id() -> str:
    return str(uuid.uuid4())


def _pick(data: Dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    """Read a key written either by the web UI (camelCase) or by hand (snake_case)"""
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def coerce_enum(enum_cls: Type[Enum], value: Any) -> Any:
    """
    Map a raw value onto an enum member.

    Unknown values are returned unchanged so downstream fallbacks
    (visible-by-default, ``=`` operator) still see them.
    """
    if isinstance(value, enum_cls) or value is None:
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return value


def enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def stringify_value(value: Any) -> str:
    """
    Render a response value the way the web UI stringifies it.

    Booleans become ``true``/``false``, lists are comma-joined and
    integral floats drop their ``.0``.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else stringify_value(item) for item in value)
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass
class ConditionalLogic:
    """Show a question only when an earlier answer satisfies a predicate"""
    question_id: str
    operator: Union[ConditionalOperator, str]
    value: Union[str, int, float, bool]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionId": self.question_id,
            "operator": enum_value(self.operator),
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConditionalLogic":
        return cls(
            question_id=_pick(data, "questionId", "question_id", ""),
            operator=coerce_enum(ConditionalOperator, data.get("operator")),
            value=data.get("value", ""),
        )


@dataclass
class ValidationRule:
    """A single constraint on an answer"""
    type: Union[ValidationRuleType, str]
    value: Optional[Union[str, int, float]] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": enum_value(self.type)}
        if self.value is not None:
            result["value"] = self.value
        if self.message is not None:
            result["message"] = self.message
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationRule":
        return cls(
            type=coerce_enum(ValidationRuleType, data.get("type")),
            value=data.get("value"),
            message=data.get("message"),
        )


@dataclass
class Question:
    """One form question and the column its answer feeds"""
    id: str
    type: Union[QuestionType, str]
    label: str
    sql_column_name: str = ""
    required: bool = False
    validation_rules: List[ValidationRule] = field(default_factory=list)
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    options: Optional[List[str]] = None
    table_name: Optional[str] = None
    conditional_logic: Optional[ConditionalLogic] = None
    order: int = 0

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "type": enum_value(self.type),
            "label": self.label,
            "required": self.required,
            "validationRules": [rule.to_dict() for rule in self.validation_rules],
            "sqlColumnName": self.sql_column_name,
            "order": self.order,
        }
        if self.placeholder is not None:
            result["placeholder"] = self.placeholder
        if self.help_text is not None:
            result["helpText"] = self.help_text
        if self.options is not None:
            result["options"] = list(self.options)
        if self.table_name is not None:
            result["tableName"] = self.table_name
        if self.conditional_logic is not None:
            result["conditionalLogic"] = self.conditional_logic.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        logic = _pick(data, "conditionalLogic", "conditional_logic")
        options = data.get("options")
        return cls(
            id=str(data.get("id", "")),
            type=coerce_enum(QuestionType, data.get("type", QuestionType.TEXT)),
            label=data.get("label", ""),
            sql_column_name=_pick(data, "sqlColumnName", "sql_column_name", "") or "",
            required=bool(data.get("required", False)),
            validation_rules=[
                ValidationRule.from_dict(rule)
                for rule in (_pick(data, "validationRules", "validation_rules") or [])
            ],
            placeholder=data.get("placeholder"),
            help_text=_pick(data, "helpText", "help_text"),
            options=list(options) if options is not None else None,
            table_name=_pick(data, "tableName", "table_name"),
            conditional_logic=ConditionalLogic.from_dict(logic) if logic else None,
            order=int(data.get("order", 0) or 0),
        )


@dataclass
class SQLCondition:
    """One predicate of a WHERE clause"""
    column_name: str
    operator: Union[ConditionOperator, str]
    value: str
    value_type: Union[ConditionValueType, str] = ConditionValueType.STATIC
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "columnName": self.column_name,
            "operator": enum_value(self.operator),
            "value": self.value,
            "valueType": enum_value(self.value_type),
        }
        if self.id is not None:
            result["id"] = self.id
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SQLCondition":
        value = data.get("value", "")
        return cls(
            column_name=_pick(data, "columnName", "column_name", ""),
            operator=coerce_enum(ConditionOperator, data.get("operator", ConditionOperator.EQUALS)),
            value="" if value is None else str(value),
            value_type=coerce_enum(
                ConditionValueType,
                _pick(data, "valueType", "value_type", ConditionValueType.STATIC),
            ),
            id=data.get("id"),
        )


@dataclass
class ColumnMapping:
    """Feeds one question's answer into one column"""
    question_id: str
    column_name: str
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "questionId": self.question_id,
            "columnName": self.column_name,
        }
        if self.id is not None:
            result["id"] = self.id
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColumnMapping":
        return cls(
            question_id=_pick(data, "questionId", "question_id", ""),
            column_name=_pick(data, "columnName", "column_name", ""),
            id=data.get("id"),
        )


@dataclass
class SQLOperation:
    """A declarative INSERT/UPDATE/DELETE bound to question answers"""
    id: str
    operation_type: Union[OperationType, str]
    table_name: str
    column_mappings: List[ColumnMapping] = field(default_factory=list)
    conditions: List[SQLCondition] = field(default_factory=list)
    order: int = 0
    label: Optional[str] = None
    run_conditions: List[ConditionalLogic] = field(default_factory=list)
    run_condition_logic: str = "AND"

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "operationType": enum_value(self.operation_type),
            "tableName": self.table_name,
            "columnMappings": [m.to_dict() for m in self.column_mappings],
            "conditions": [c.to_dict() for c in self.conditions],
            "order": self.order,
        }
        if self.label is not None:
            result["label"] = self.label
        if self.run_conditions:
            result["runConditions"] = [c.to_dict() for c in self.run_conditions]
            result["runConditionLogic"] = self.run_condition_logic
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SQLOperation":
        operation_type = _pick(data, "operationType", "operation_type", "")
        if isinstance(operation_type, str):
            operation_type = operation_type.upper()
        return cls(
            id=str(data.get("id") or new_id()),
            operation_type=coerce_enum(OperationType, operation_type),
            table_name=_pick(data, "tableName", "table_name", "") or "",
            column_mappings=[
                ColumnMapping.from_dict(m)
                for m in (_pick(data, "columnMappings", "column_mappings") or [])
            ],
            conditions=[SQLCondition.from_dict(c) for c in (data.get("conditions") or [])],
            order=int(data.get("order", 0) or 0),
            label=data.get("label"),
            run_conditions=[
                ConditionalLogic.from_dict(c)
                for c in (_pick(data, "runConditions", "run_conditions") or [])
            ],
            run_condition_logic=str(
                _pick(data, "runConditionLogic", "run_condition_logic", "AND") or "AND"
            ).upper(),
        )


@dataclass
class Response:
    """One answer collected during a submission"""
    question_id: str
    value: ResponseValue = None

    def to_dict(self) -> Dict[str, Any]:
        return {"questionId": self.question_id, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Response":
        return cls(
            question_id=_pick(data, "questionId", "question_id", ""),
            value=data.get("value"),
        )


@dataclass
class ColumnDefinition:
    """Column metadata recovered from DDL"""
    name: str
    raw_type: str
    nullable: bool = True
    is_primary_key: bool = False
    check_values: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "raw_type": self.raw_type,
            "nullable": self.nullable,
            "is_primary_key": self.is_primary_key,
            "check_values": self.check_values,
        }


@dataclass
class ParsedTable:
    """Result of parsing one CREATE TABLE statement"""
    table_name: str
    questions: List[Question]
    suggested_operation: SQLOperation
    columns: List[ColumnDefinition] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tableName": self.table_name,
            "questions": [q.to_dict() for q in self.questions],
            "suggestedOperation": self.suggested_operation.to_dict(),
            "columns": [c.to_dict() for c in self.columns],
        }


@dataclass
class Flow:
    """An authored set of questions plus the operations that persist them"""
    id: str
    name: str
    questions: List[Question] = field(default_factory=list)
    sql_operations: List[SQLOperation] = field(default_factory=list)
    table_name: str = ""
    description: str = ""
    welcome_message: Optional[str] = None
    completion_message: Optional[str] = None
    schema_context: Optional[str] = None
    is_active: bool = True

    def question_by_id(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "tableName": self.table_name,
            "questions": [q.to_dict() for q in self.questions],
            "sqlOperations": [op.to_dict() for op in self.sql_operations],
            "welcomeMessage": self.welcome_message,
            "completionMessage": self.completion_message,
            "schemaContext": self.schema_context,
            "isActive": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Flow":
        return cls(
            id=str(data.get("id") or new_id()),
            name=data.get("name", ""),
            description=data.get("description", "") or "",
            table_name=_pick(data, "tableName", "table_name", "") or "",
            questions=[Question.from_dict(q) for q in (data.get("questions") or [])],
            sql_operations=[
                SQLOperation.from_dict(op)
                for op in (_pick(data, "sqlOperations", "sql_operations") or [])
            ],
            welcome_message=_pick(data, "welcomeMessage", "welcome_message"),
            completion_message=_pick(data, "completionMessage", "completion_message"),
            schema_context=_pick(data, "schemaContext", "schema_context"),
            is_active=bool(_pick(data, "isActive", "is_active", True)),
        )


@dataclass
class Submission:
    """Answers one end user gave to one flow"""
    flow_id: str
    responses: List[Response] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    status: SubmissionStatus = SubmissionStatus.PENDING
    generated_sql: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "flowId": self.flow_id,
            "responses": [r.to_dict() for r in self.responses],
            "status": self.status.value,
            "generatedSQL": self.generated_sql,
        }

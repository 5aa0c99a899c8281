"""
Error Handling Module for FormSQL
Defines custom exceptions raised by the form-to-SQL core
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import datetime


class ErrorSeverity(str, Enum):
    """Error severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for classification"""
    IDENTIFIER = "identifier"
    VALUE_FORMAT = "value_format"
    FLOW_DEFINITION = "flow_definition"
    AI_OUTPUT = "ai_output"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Additional context for errors"""
    correlation_id: Optional[str] = None
    flow_id: Optional[str] = None
    operation_id: Optional[str] = None
    table_name: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "correlation_id": self.correlation_id,
            "flow_id": self.flow_id,
            "operation_id": self.operation_id,
            "table_name": self.table_name,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class FormSQLError(Exception):
    """Base exception for FormSQL"""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[ErrorContext] = None,
        recoverable: bool = True,
        suggestions: Optional[List[str]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.recoverable = recoverable
        self.suggestions = suggestions or []
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "suggestions": self.suggestions,
            "context": self.context.to_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"


class IdentifierError(FormSQLError):
    """A table or column name failed identifier validation"""

    def __init__(
        self,
        message: str,
        identifier: Optional[str] = None,
        reason: Optional[str] = None,
        context: Optional[ErrorContext] = None,
    ):
        suggestions = [
            "Use only letters, digits and underscores",
            "Start the name with a letter or underscore",
        ]
        if reason == "reserved keyword":
            suggestions.append(f"Rename '{identifier}' so it is not a SQL keyword")

        super().__init__(
            message=message,
            category=ErrorCategory.IDENTIFIER,
            severity=ErrorSeverity.HIGH,
            context=context,
            recoverable=True,
            suggestions=suggestions,
        )
        self.identifier = identifier
        self.reason = reason


class ValueFormatError(FormSQLError):
    """A response value could not be rendered as a SQL literal"""

    def __init__(
        self,
        message: str,
        value: Any = None,
        question_type: Optional[str] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.VALUE_FORMAT,
            severity=ErrorSeverity.MEDIUM,
            context=context,
            recoverable=True,
            suggestions=[
                "Validate the answer against the question type before compiling",
            ],
        )
        self.value = value
        self.question_type = question_type


class FlowDefinitionError(FormSQLError):
    """A flow, response or schema file could not be loaded"""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None
    ):
        suggestions = ["Check the file is valid JSON or YAML"]
        if source:
            suggestions.append(f"Review the contents of {source}")

        super().__init__(
            message=message,
            category=ErrorCategory.FLOW_DEFINITION,
            severity=ErrorSeverity.MEDIUM,
            context=context,
            recoverable=False,
            suggestions=suggestions,
            original_error=original_error
        )
        self.source = source


class AIOutputError(FormSQLError):
    """AI-proposed content could not be recovered into structured data"""

    def __init__(
        self,
        message: str,
        raw_output: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.AI_OUTPUT,
            severity=ErrorSeverity.MEDIUM,
            context=context,
            recoverable=True,
            suggestions=[
                "Retry the generation",
                "Simplify the purpose or schema so the response is shorter",
            ],
            original_error=original_error
        )
        self.raw_output = raw_output


class ConfigurationError(FormSQLError):
    """Configuration errors"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None
    ):
        suggestions = ["Review configuration settings"]
        if config_key:
            suggestions.append(f"Check configuration for key: {config_key}")

        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            context=context,
            recoverable=False,
            suggestions=suggestions,
            original_error=original_error
        )
        self.config_key = config_key


def format_error_for_display(error: FormSQLError) -> str:
    """Format an error for an operator-facing console"""
    lines = [
        f"Error Type: {error.__class__.__name__}",
        f"Category: {error.category.value}",
        f"Message: {error.message}",
    ]

    if error.suggestions:
        lines.append("Suggestions:")
        for suggestion in error.suggestions:
            lines.append(f"  - {suggestion}")

    if error.original_error:
        lines.append(f"Original Error: {str(error.original_error)}")

    return "\n".join(lines)

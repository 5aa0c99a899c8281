"""
Utilities Package for FormSQL
"""
from .logging import (
    setup_logging,
    get_logger,
    set_correlation_id,
    get_correlation_id,
    clear_context,
    log_context,
    log_operation,
)

from .errors import (
    ErrorSeverity,
    ErrorCategory,
    ErrorContext,
    FormSQLError,
    IdentifierError,
    ValueFormatError,
    FlowDefinitionError,
    AIOutputError,
    ConfigurationError,
    format_error_for_display,
)

from .metrics import (
    MetricsCollector,
    get_metrics_collector,
    counter,
    timer,
    FormSQLMetrics,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "set_correlation_id",
    "get_correlation_id",
    "clear_context",
    "log_context",
    "log_operation",
    # Errors
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorContext",
    "FormSQLError",
    "IdentifierError",
    "ValueFormatError",
    "FlowDefinitionError",
    "AIOutputError",
    "ConfigurationError",
    "format_error_for_display",
    # Metrics
    "MetricsCollector",
    "get_metrics_collector",
    "counter",
    "timer",
    "FormSQLMetrics",
]

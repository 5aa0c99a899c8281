"""
Configuration Management for FormSQL
Uses Pydantic for validation; config objects are passed explicitly to the core
"""
from __future__ import annotations

import os
from enum import Enum
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .utils.errors import ConfigurationError


class LogLevel(str, Enum):
    """Log levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CompilerConfig(BaseModel):
    """Options for the SQL operation compiler"""
    validate_identifiers: bool = True
    strict_numbers: bool = False
    statement_separator: str = "\n\n"
    extra_reserved_keywords: List[str] = Field(default_factory=list)

    @field_validator('extra_reserved_keywords')
    @classmethod
    def upper_keywords(cls, v: List[str]) -> List[str]:
        return [keyword.strip().upper() for keyword in v if keyword.strip()]


class VisibilityConfig(BaseModel):
    """Options for conditional question visibility"""
    unknown_operator_visible: bool = True


class GuardrailConfig(BaseModel):
    """Options for the safety guardrails"""
    extra_reserved_keywords: List[str] = Field(default_factory=list)
    max_repair_attempts: int = Field(default=20, ge=1, le=200)

    @field_validator('extra_reserved_keywords')
    @classmethod
    def upper_keywords(cls, v: List[str]) -> List[str]:
        """Keywords are compared upper-cased"""
        return [keyword.strip().upper() for keyword in v if keyword.strip()]


class SystemConfig(BaseModel):
    """Main system configuration"""
    compiler: CompilerConfig = Field(default_factory=CompilerConfig)
    visibility: VisibilityConfig = Field(default_factory=VisibilityConfig)
    guardrails: GuardrailConfig = Field(default_factory=GuardrailConfig)
    log_level: LogLevel = LogLevel.INFO
    log_json: bool = False
    metrics_enabled: bool = True

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "SystemConfig":
        """Create configuration from environment variables (and an optional .env file)"""
        load_dotenv(env_file)

        def flag(name: str, default: str) -> bool:
            return os.getenv(name, default).lower() in ("1", "true", "yes")

        keywords = os.getenv("FORMSQL_RESERVED_KEYWORDS", "")

        try:
            return cls(
                compiler=CompilerConfig(
                    validate_identifiers=flag("FORMSQL_VALIDATE_IDENTIFIERS", "true"),
                    strict_numbers=flag("FORMSQL_STRICT_NUMBERS", "false"),
                    extra_reserved_keywords=[k for k in keywords.split(",") if k],
                ),
                visibility=VisibilityConfig(
                    unknown_operator_visible=flag("FORMSQL_UNKNOWN_OPERATOR_VISIBLE", "true"),
                ),
                guardrails=GuardrailConfig(
                    extra_reserved_keywords=[k for k in keywords.split(",") if k],
                ),
                log_level=LogLevel(os.getenv("FORMSQL_LOG_LEVEL", "INFO").upper()),
                log_json=flag("FORMSQL_LOG_JSON", "false"),
                metrics_enabled=flag("FORMSQL_METRICS_ENABLED", "true"),
            )
        except (ValueError, ValidationError) as e:
            raise ConfigurationError(
                f"Invalid FormSQL environment configuration: {e}",
                original_error=e,
            ) from e

    model_config = {"use_enum_values": True}

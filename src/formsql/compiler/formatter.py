"""
SQL Value Formatter
Type-aware conversion of a response value into a SQL literal

Escaping is exactly one rule: every ``'`` becomes ``''``. Nothing else is
touched, so generated text stays byte-compatible with flows authored in
the web builder.
"""
from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Optional, Union

from ..schemas import QuestionType, ResponseValue
from ..schemas.models import enum_value, stringify_value
from ..utils import ValueFormatError

ISO_DATE_PREFIX = re.compile(r'^\d{4}-\d{2}-\d{2}')

FALLBACK_DATE_FORMATS = (
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)


def escape_sql_string(value: str) -> str:
    return value.replace("'", "''")


def quote_sql_string(value: str) -> str:
    return f"'{escape_sql_string(value)}'"


def parse_date(value: str) -> Optional[date]:
    """Best-effort date parsing; returns None when nothing matches"""
    text = value.strip()
    if not text:
        return None

    if ISO_DATE_PREFIX.match(text):
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            try:
                return date.fromisoformat(text[:10])
            except ValueError:
                return None

    for fmt in FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _strict_number(value: ResponseValue) -> str:
    if isinstance(value, bool) or isinstance(value, (list, tuple)):
        raise ValueFormatError(
            f"Invalid number value: {stringify_value(value)}",
            value=value,
            question_type=QuestionType.NUMBER.value,
        )
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValueFormatError(
            f"Invalid number value: {value}",
            value=value,
            question_type=QuestionType.NUMBER.value,
        ) from e
    if math.isnan(number) or math.isinf(number):
        raise ValueFormatError(
            f"Invalid number value: {value}",
            value=value,
            question_type=QuestionType.NUMBER.value,
        )
    return stringify_value(number)


def format_value(
    value: ResponseValue,
    question_type: Union[QuestionType, str],
    strict_numbers: bool = False,
) -> str:
    """
    Format a response value as a SQL literal.

    Args:
        value: The collected answer
        question_type: Declared type of the question that produced it
        strict_numbers: Reject non-numeric input for number questions
            instead of passing it through unquoted

    Returns:
        A SQL literal, or ``NULL``
    """
    if value is None:
        return "NULL"

    qtype = enum_value(question_type)

    if qtype == QuestionType.NUMBER.value:
        if strict_numbers:
            return _strict_number(value)
        # Pass-through: non-numeric strings land unquoted.
        return stringify_value(value)

    if qtype == QuestionType.YES_NO.value:
        return "1" if value is True or value == "yes" else "0"

    if qtype == QuestionType.DATE.value:
        if isinstance(value, str):
            parsed = parse_date(value)
            if parsed is not None:
                return f"'{parsed.strftime('%Y-%m-%d')}'"
        return quote_sql_string(stringify_value(value))

    if qtype == QuestionType.MULTI_SELECT.value:
        if isinstance(value, (list, tuple)):
            return quote_sql_string(", ".join("" if item is None else stringify_value(item) for item in value))
        return quote_sql_string(stringify_value(value))

    # text, email, phone, single-select
    return quote_sql_string(stringify_value(value))

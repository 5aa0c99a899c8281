"""
Question Type Inference
Maps a raw SQL column type (and optional CHECK list) onto a QuestionType
"""
from __future__ import annotations

from typing import List, Optional

from ..schemas import QuestionType

NUMERIC_MARKERS = ("INT", "NUMERIC", "DECIMAL", "FLOAT", "DOUBLE", "REAL", "NUMBER")
DATE_MARKERS = ("DATE", "TIME")


def infer_question_type(raw_type: str, check_values: Optional[List[str]] = None) -> QuestionType:
    """
    Infer the question widget for a column.

    Precedence is fixed and first match wins: a CHECK list beats every
    type name, so ``BOOLEAN CHECK (x IN (...))`` is a single-select.
    """
    t = (raw_type or "").upper()

    if check_values:
        return QuestionType.SINGLE_SELECT
    if "BOOL" in t or t in ("BIT", "TINYINT(1)"):
        return QuestionType.YES_NO
    if any(marker in t for marker in NUMERIC_MARKERS):
        return QuestionType.NUMBER
    if any(marker in t for marker in DATE_MARKERS):
        return QuestionType.DATE
    if "EMAIL" in t:
        return QuestionType.EMAIL
    return QuestionType.TEXT

"""
DDL Package for FormSQL
"""
from .parser import (
    parse_ddl,
    parse_column_clause,
    split_top_level,
    infer_label,
)
from .type_inference import infer_question_type

__all__ = [
    "parse_ddl",
    "parse_column_clause",
    "split_top_level",
    "infer_label",
    "infer_question_type",
]

"""Normalization of broker responses into the structured pricing model."""

from .classifier import any_new_format, is_new_format
from .converter import convert_broker, convert_new_format_to_structured, parse_fee_structure
from .rules import DEFAULT_RULES, KeywordRule, RuleTables, infer_instrument_type, infer_market

__all__ = [
    "is_new_format",
    "any_new_format",
    "convert_broker",
    "convert_new_format_to_structured",
    "parse_fee_structure",
    "DEFAULT_RULES",
    "KeywordRule",
    "RuleTables",
    "infer_instrument_type",
    "infer_market",
]

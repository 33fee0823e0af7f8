"""Free-text fee formula parsing."""

from .expressions import (
    extract_currency_amount,
    extract_min_max,
    extract_percentage,
    extract_range,
    mentions_currency_amount,
    mentions_maximum,
    mentions_minimum,
)

__all__ = [
    "extract_percentage",
    "extract_currency_amount",
    "extract_min_max",
    "extract_range",
    "mentions_currency_amount",
    "mentions_minimum",
    "mentions_maximum",
]

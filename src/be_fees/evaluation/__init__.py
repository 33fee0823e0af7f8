"""Fee evaluation for normalized transaction fees."""

from .fee_calculator import (
    EXAMPLE_AMOUNTS,
    amount_key,
    calculate_all_fees,
    calculate_fee,
    find_tier,
    generate_explanation,
    round_to_cents,
)

__all__ = [
    "EXAMPLE_AMOUNTS",
    "amount_key",
    "calculate_fee",
    "calculate_all_fees",
    "find_tier",
    "generate_explanation",
    "round_to_cents",
]

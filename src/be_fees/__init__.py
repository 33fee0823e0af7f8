"""be_fees package."""

from .evaluation.fee_calculator import calculate_fee
from .models import BrokerPricing, FlattenedPricingRow, TransactionFee
from .normalization.classifier import is_new_format
from .normalization.converter import convert_new_format_to_structured
from .pipeline import flatten_api_data, generate_report, normalize_brokers

__all__ = [
    "BrokerPricing",
    "FlattenedPricingRow",
    "TransactionFee",
    "calculate_fee",
    "convert_new_format_to_structured",
    "flatten_api_data",
    "generate_report",
    "is_new_format",
    "normalize_brokers",
]

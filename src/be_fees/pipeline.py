"""Pipeline turning broker API payloads into flat pricing rows."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .evaluation.fee_calculator import EXAMPLE_AMOUNTS, calculate_fee
from .models import BrokerPricing, FlattenedPricingRow, OtherFee
from .normalization.classifier import any_new_format
from .normalization.converter import convert_new_format_to_structured
from .normalization.rules import RuleTables

logger = logging.getLogger(__name__)


def _format_number(value: float) -> str:
    return str(int(value)) if value.is_integer() else repr(value)


def summarize_other_fees(fees: Optional[List[OtherFee]]) -> str:
    """Render other fees as ``name (value currency/frequency • notes); ...``.

    A fee whose value could not be parsed shows no amount at all, so it never
    reads as a zero charge.
    """
    if not fees:
        return ""
    summaries = []
    for fee in fees:
        parts: List[str] = []
        if fee.value is not None:
            frequency = f"/{fee.frequency}" if fee.frequency else ""
            parts.append(f"{_format_number(fee.value)} {fee.currency or ''}{frequency}".strip())
        if fee.notes:
            parts.append(fee.notes)
        detail = f" ({' • '.join(parts)})" if parts else ""
        summaries.append(f"{fee.name}{detail}")
    return "; ".join(summaries)


def normalize_brokers(brokers: Any, rules: Optional[RuleTables] = None) -> List[BrokerPricing]:
    """Bring a payload into the structured shape.

    The format is decided once for the whole list: a single API response is
    expected to use one schema throughout.
    """
    if not isinstance(brokers, list):
        return []
    if any_new_format(brokers):
        return convert_new_format_to_structured(brokers, rules)
    return [BrokerPricing.from_dict(item) for item in brokers if isinstance(item, dict)]


def _rows_for_broker(broker: BrokerPricing) -> List[FlattenedPricingRow]:
    pricing = broker.pricing_model
    custody = pricing.custody_fee
    fx = pricing.fx_fees
    other_summary = summarize_other_fees(pricing.other_fees)

    rows: List[FlattenedPricingRow] = []
    for idx, fee in enumerate(pricing.transaction_fees):
        formula = fee.formula_structured
        examples = [calculate_fee(fee, amount) for amount in EXAMPLE_AMOUNTS]
        rows.append(
            FlattenedPricingRow(
                id=f"{broker.broker_name}-{fee.instrument_type}-{fee.market}-{idx}",
                broker=broker.broker_name,
                instrument_type=fee.instrument_type,
                market=fee.market,
                pricing_type=fee.pricing_type,
                base_fee=formula.base if formula else None,
                percent_fee=formula.percent if formula else None,
                min_fee=formula.min if formula else None,
                max_fee=formula.max if formula else None,
                custody_fee_type=custody.type if custody else "",
                custody_fee_value=custody.value if custody else None,
                custody_frequency=custody.frequency if custody else "",
                fx_fee_type=fx.type if fx else "",
                fx_fee_value=fx.value if fx else None,
                other_fees_summary=other_summary,
                example_fee_1000=examples[0],
                example_fee_5000=examples[1],
                example_fee_10000=examples[2],
                source_url=broker.source_url,
            )
        )
    return rows


def flatten_api_data(brokers: Any, rules: Optional[RuleTables] = None) -> List[FlattenedPricingRow]:
    """Expand a broker payload into one row per transaction fee line.

    Accepts either response schema. Anything that is not a list yields an
    empty result.
    """
    if not isinstance(brokers, list):
        logger.debug(f"Ignoring non-list payload of type {type(brokers).__name__}")
        return []

    rows: List[FlattenedPricingRow] = []
    for broker in normalize_brokers(brokers, rules):
        rows.extend(_rows_for_broker(broker))
    logger.info(f"Flattened {len(brokers)} broker records into {len(rows)} pricing rows")
    return rows


def generate_report(rows: List[FlattenedPricingRow]) -> List[Dict[str, Any]]:
    """Convert pricing rows into dictionaries ready for CSV/JSON export."""

    return [row.as_dict() for row in rows]

"""Conversion of human-readable broker responses into the structured shape.

The human-readable schema describes fees as text (``"0.35% Min. €1"``) keyed
by category and condition. This module turns each broker record into a
:class:`~be_fees.models.BrokerPricing` so the calculator only ever sees one
shape. Conversion is best effort: text that cannot be read becomes ``None``
rather than an error, and each broker is converted on its own.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..models import (
    PRICING_LINEAR,
    PRICING_TIERED,
    BrokerPricing,
    CustodyFee,
    FxFee,
    OtherFee,
    PricingModel,
    PricingTier,
    StructuredFormula,
    TransactionFee,
)
from ..parsing.expressions import (
    MAX_RE,
    MIN_RE,
    extract_currency_amount,
    extract_min_max,
    extract_percentage,
    extract_range,
    mentions_currency_amount,
    mentions_maximum,
    mentions_minimum,
)
from .rules import DEFAULT_RULES, RuleTables

logger = logging.getLogger(__name__)

NO_CUSTODY_MARKER = "None"
DEFAULT_CURRENCY = "EUR"


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _items(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def parse_fee_structure(
    fee_structure: str, condition: str
) -> Tuple[StructuredFormula, Optional[List[PricingTier]]]:
    """Read one fee line into a linear formula or a single-entry tier list.

    Explicit ``Min.``/``Max.`` values are applied last and override anything
    picked up earlier from the same text.
    """
    base: Optional[float] = None
    percent: Optional[float] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    tiers: Optional[List[PricingTier]] = None

    # Amounts inside explicit bounds are not a flat charge.
    remainder = MAX_RE.sub(" ", MIN_RE.sub(" ", fee_structure))
    amount = extract_currency_amount(remainder)

    if fee_structure.strip().lower() == "free":
        base = 0.0
    elif "%" in fee_structure:
        percent = extract_percentage(fee_structure)
        if amount is not None:
            if mentions_minimum(remainder):
                minimum = amount
            elif mentions_maximum(remainder):
                maximum = amount
            else:
                base = amount
    elif mentions_currency_amount(fee_structure):
        bounds = extract_range(condition)
        if bounds is not None:
            lower, upper = bounds
            tiers = [
                PricingTier(
                    from_amount=lower,
                    to_amount=upper,
                    fee=extract_currency_amount(fee_structure),
                    currency=DEFAULT_CURRENCY,
                )
            ]
        else:
            base = amount

    bounds_text = extract_min_max(fee_structure)
    if "min" in bounds_text:
        minimum = bounds_text["min"]
    if "max" in bounds_text:
        maximum = bounds_text["max"]

    if base is None and percent is None and tiers is None:
        logger.debug(f"No computable fee in {fee_structure!r}")

    formula = StructuredFormula(base=base, percent=percent, min=minimum, max=maximum)
    return formula, tiers


def _convert_tier(instrument_type: str, tier: Dict[str, Any], rules: RuleTables) -> TransactionFee:
    condition = _text(tier.get("volume_or_condition"))
    fee_structure = _text(tier.get("fee_structure"))
    formula, tiers = parse_fee_structure(fee_structure, condition.lower())
    return TransactionFee(
        instrument_type=instrument_type,
        market=rules.market(condition),
        pricing_type=PRICING_TIERED if tiers else PRICING_LINEAR,
        formula_human=fee_structure,
        formula_structured=formula,
        tiers=tiers,
        notes=_text(tier.get("notes")),
    )


def _convert_transaction_fees(categories: Any, rules: RuleTables) -> List[TransactionFee]:
    fees: List[TransactionFee] = []
    for category in _items(categories):
        instrument_type = rules.instrument_type(_text(category.get("category")))
        for tier in _items(category.get("tiers")):
            fees.append(_convert_tier(instrument_type, tier, rules))
    return fees


def _convert_special_fee(fee: Dict[str, Any]) -> OtherFee:
    amount = _text(fee.get("amount"))
    when_applied = _text(fee.get("when_applied"))
    is_percent = "%" in amount
    value = extract_percentage(amount) if is_percent else extract_currency_amount(amount)
    if value is None:
        logger.debug(f"Could not read special fee amount {amount!r}")
    return OtherFee(
        name=_text(fee.get("description")),
        type="percentage" if is_percent else "fixed",
        value=value,
        currency=DEFAULT_CURRENCY,
        frequency="yearly" if "annual" in when_applied.lower() else "on transaction",
        notes=when_applied,
    )


def _convert_custody(custody_charges: Any) -> Optional[CustodyFee]:
    text = _text(custody_charges)
    if not text.strip() or text.strip() == NO_CUSTODY_MARKER:
        return None
    is_percent = "%" in text
    return CustodyFee(
        type="percentage" if is_percent else "fixed",
        value=extract_percentage(text) if is_percent else extract_currency_amount(text),
        currency=DEFAULT_CURRENCY,
        frequency="monthly" if "month" in text.lower() else "yearly",
        notes=text,
    )


def _convert_fx(special_fees: List[Dict[str, Any]]) -> Optional[FxFee]:
    for fee in special_fees:
        if "currency" in _text(fee.get("description")).lower():
            amount = _text(fee.get("amount"))
            return FxFee(
                type="percentage",
                value=extract_percentage(amount) if "%" in amount else None,
                notes="Currency conversion",
            )
    return None


def convert_broker(
    record: Dict[str, Any], rules: RuleTables = DEFAULT_RULES, checked_at: Optional[str] = None
) -> BrokerPricing:
    """Convert one human-readable broker record."""
    special_fees = _items(record.get("special_fees"))
    pricing_model = PricingModel(
        custody_fee=_convert_custody(record.get("custody_charges")),
        transaction_fees=_convert_transaction_fees(record.get("fee_categories"), rules),
        fx_fees=_convert_fx(special_fees),
        other_fees=[_convert_special_fee(fee) for fee in special_fees],
    )
    return BrokerPricing(
        broker_name=_text(record.get("broker_name")),
        pricing_model=pricing_model,
        source_url=_text(record.get("source_url")),
        source_last_checked=checked_at,
    )


def convert_new_format_to_structured(
    brokers: Iterable[Any],
    rules: Optional[RuleTables] = None,
    checked_at: Optional[str] = None,
) -> List[BrokerPricing]:
    """Convert a list of human-readable broker records.

    Records carrying an ``error`` field come from failed extractions and are
    dropped entirely.
    """
    rules = rules or DEFAULT_RULES
    converted: List[BrokerPricing] = []
    for record in brokers:
        if not isinstance(record, dict):
            continue
        if record.get("error"):
            logger.info(f"Skipping {record.get('broker_name', '<unknown>')}: extraction error {record['error']!r}")
            continue
        converted.append(convert_broker(record, rules, checked_at))
    logger.debug(f"Converted {len(converted)} broker records to the structured format")
    return converted

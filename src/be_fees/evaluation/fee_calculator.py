"""Deterministic fee calculator for normalized transaction fees.

A :class:`~be_fees.models.TransactionFee` is computed one of two ways:

- linear: ``base + percent% * amount``, raised to ``min`` and then capped at
  ``max`` when those bounds are present;
- tiered: the flat fee of the first tier whose inclusive bounds contain the
  amount.

Arithmetic runs on the exact decimal value of the inputs and is rounded
half-up to cents, so a fee that is exactly 2.005 comes out as 2.01. Missing
information is reported as ``None``; nothing here raises.
"""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Dict, Iterable, Optional

from ..models import PricingTier, StructuredFormula, TransactionFee

EXAMPLE_AMOUNTS = (1000, 5000, 10000)
CENT = Decimal("0.01")
# Enough digits to hold any finite float quantized to cents.
MONEY_PRECISION = 400


def _decimal(value: float) -> Decimal:
    # str() gives the shortest repr, i.e. the value the source meant.
    return Decimal(str(value))


def _to_cents(value: Decimal) -> float:
    if value.adjusted() >= MONEY_PRECISION - 3:
        # Far beyond float range; float() gives inf.
        return float(value)
    with localcontext() as ctx:
        ctx.prec = MONEY_PRECISION
        return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def round_to_cents(value: float) -> float:
    """Round a monetary value to 2 decimals, half-up."""
    return _to_cents(_decimal(value))


def _is_linear(formula: Optional[StructuredFormula]) -> bool:
    return formula is not None and (formula.base is not None or formula.percent is not None)


def _unclamped(formula: StructuredFormula, amount: float) -> Decimal:
    base = _decimal(formula.base) if formula.base is not None else Decimal(0)
    percent = _decimal(formula.percent) if formula.percent is not None else Decimal(0)
    with localcontext() as ctx:
        ctx.prec = MONEY_PRECISION
        return base + percent / Decimal(100) * _decimal(amount)


def _linear_fee(formula: StructuredFormula, amount: float) -> float:
    total = _unclamped(formula, amount)
    if formula.min is not None:
        total = max(total, _decimal(formula.min))
    if formula.max is not None:
        total = min(total, _decimal(formula.max))
    return _to_cents(total)


def find_tier(tiers: Iterable[PricingTier], amount: float) -> Optional[PricingTier]:
    """Return the first tier containing ``amount``."""
    for tier in tiers:
        if tier.contains(amount):
            return tier
    return None


def calculate_fee(fee: Optional[TransactionFee], amount: float) -> Optional[float]:
    """Compute the fee for one trade of ``amount``.

    Returns None when the fee line has no computable rule for this amount.
    """
    if fee is None or not math.isfinite(amount):
        return None

    if _is_linear(fee.formula_structured):
        result = _linear_fee(fee.formula_structured, amount)
        return result if math.isfinite(result) else None

    if fee.tiers:
        tier = find_tier(fee.tiers, amount)
        if tier is not None and tier.fee is not None:
            return round_to_cents(tier.fee)

    return None


def amount_key(amount: float) -> str:
    return str(int(amount)) if float(amount).is_integer() else str(amount)


def calculate_all_fees(fee: TransactionFee, amounts: Iterable[float] = EXAMPLE_AMOUNTS) -> Dict[str, Optional[float]]:
    """Compute fees for multiple amounts, keyed by the amount as a string."""
    return {amount_key(a): calculate_fee(fee, a) for a in amounts}


def generate_explanation(fee: TransactionFee, amount: float) -> str:
    """Generate a human-readable trace of how the fee for ``amount`` is found."""
    expected = calculate_fee(fee, amount)
    if expected is None:
        return f"No computable fee for {fee.instrument_type} on {fee.market} at EUR{amount:,.0f}"

    formula = fee.formula_structured
    if _is_linear(formula):
        parts = []
        if formula.base is not None:
            parts.append(f"EUR{formula.base:.2f}")
        if formula.percent is not None:
            parts.append(f"EUR{amount:,.0f} x {formula.percent:.2f}%")
        text = " + ".join(parts)
        raw = _to_cents(_unclamped(formula, amount))
        if formula.min is not None and raw < formula.min:
            return f"{text} = EUR{raw:.2f} < EUR{formula.min:.2f} minimum -> EUR{expected:.2f}"
        if formula.max is not None and raw > formula.max:
            return f"{text} = EUR{raw:.2f}, capped at EUR{formula.max:.2f} -> EUR{expected:.2f}"
        return f"{text} = EUR{expected:.2f}"

    tier = find_tier(fee.tiers or [], amount)
    lower = f"EUR{tier.from_amount:,.0f}" if tier.from_amount is not None else "0"
    upper = f"EUR{tier.to_amount:,.0f}" if tier.to_amount is not None else "unbounded"
    return f"Flat fee EUR{expected:.2f} (amount EUR{amount:,.0f} in {lower} - {upper})"

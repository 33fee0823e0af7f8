"""Data models for normalized broker pricing."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

INSTRUMENT_TYPES = ("Equities", "Options", "Bonds", "Funds")
PRICING_LINEAR = "linear"
PRICING_TIERED = "tiered"


def _as_float(value: Any) -> Optional[float]:
    """Read a finite JSON number, returning None for anything else."""
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _as_str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _as_mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


@dataclass(frozen=True)
class StructuredFormula:
    """Linear fee formula: base + percent% of the amount, clamped to [min, max]."""

    base: Optional[float] = None
    percent: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["StructuredFormula"]:
        if not isinstance(raw, dict):
            return None
        return cls(
            base=_as_float(raw.get("base")),
            percent=_as_float(raw.get("percent")),
            min=_as_float(raw.get("min")),
            max=_as_float(raw.get("max")),
        )

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {"base": self.base, "percent": self.percent, "min": self.min, "max": self.max}


@dataclass(frozen=True)
class PricingTier:
    """A single amount bucket carrying a flat fee. Bounds are inclusive."""

    from_amount: Optional[float] = None
    to_amount: Optional[float] = None
    fee: Optional[float] = None
    currency: str = "EUR"

    def contains(self, amount: float) -> bool:
        meets_from = self.from_amount is None or amount >= self.from_amount
        meets_to = self.to_amount is None or amount <= self.to_amount
        return meets_from and meets_to

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["PricingTier"]:
        if not isinstance(raw, dict):
            return None
        return cls(
            from_amount=_as_float(raw.get("from")),
            to_amount=_as_float(raw.get("to")),
            fee=_as_float(raw.get("fee")),
            currency=_as_str(raw.get("currency"), "EUR"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_amount,
            "to": self.to_amount,
            "fee": self.fee,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class TransactionFee:
    """Normalized representation of a single transaction fee line."""

    instrument_type: str
    market: str
    pricing_type: str = PRICING_LINEAR
    formula_human: str = ""
    formula_structured: Optional[StructuredFormula] = None
    tiers: Optional[List[PricingTier]] = None
    notes: str = ""

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "TransactionFee":
        tiers = None
        if isinstance(raw.get("tiers"), list):
            tiers = [t for t in (PricingTier.from_dict(item) for item in raw["tiers"]) if t is not None]
        return cls(
            instrument_type=_as_str(raw.get("instrument_type")),
            market=_as_str(raw.get("market")),
            pricing_type=_as_str(raw.get("pricing_type"), PRICING_LINEAR),
            formula_human=_as_str(raw.get("formula_human")),
            formula_structured=StructuredFormula.from_dict(raw.get("formula_structured")),
            tiers=tiers,
            notes=_as_str(raw.get("notes")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instrument_type": self.instrument_type,
            "market": self.market,
            "pricing_type": self.pricing_type,
            "formula_human": self.formula_human,
            "formula_structured": self.formula_structured.to_dict() if self.formula_structured else None,
            "tiers": [tier.to_dict() for tier in self.tiers] if self.tiers is not None else None,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class CustodyFee:
    """Recurring custody charge. ``value`` is None when it could not be parsed."""

    type: str
    value: Optional[float]
    currency: str = "EUR"
    frequency: str = ""
    notes: str = ""

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["CustodyFee"]:
        if not isinstance(raw, dict):
            return None
        return cls(
            type=_as_str(raw.get("type")),
            value=_as_float(raw.get("value")),
            currency=_as_str(raw.get("currency"), "EUR"),
            frequency=_as_str(raw.get("frequency")),
            notes=_as_str(raw.get("notes")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "value": self.value,
            "currency": self.currency,
            "frequency": self.frequency,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class FxFee:
    """Currency conversion charge."""

    type: str
    value: Optional[float]
    notes: str = ""

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["FxFee"]:
        if not isinstance(raw, dict):
            return None
        return cls(
            type=_as_str(raw.get("type")),
            value=_as_float(raw.get("value")),
            notes=_as_str(raw.get("notes")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "value": self.value, "notes": self.notes}


@dataclass(frozen=True)
class OtherFee:
    """Any named fee not tied to the trade size."""

    name: str
    type: str
    value: Optional[float]
    currency: str = "EUR"
    frequency: str = ""
    notes: str = ""

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["OtherFee"]:
        if not isinstance(raw, dict):
            return None
        return cls(
            name=_as_str(raw.get("name")),
            type=_as_str(raw.get("type")),
            value=_as_float(raw.get("value")),
            currency=_as_str(raw.get("currency"), "EUR"),
            frequency=_as_str(raw.get("frequency")),
            notes=_as_str(raw.get("notes")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "value": self.value,
            "currency": self.currency,
            "frequency": self.frequency,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class PricingModel:
    custody_fee: Optional[CustodyFee] = None
    transaction_fees: List[TransactionFee] = field(default_factory=list)
    fx_fees: Optional[FxFee] = None
    other_fees: List[OtherFee] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Any) -> "PricingModel":
        raw = _as_mapping(raw)
        transaction_fees = [
            TransactionFee.from_dict(item)
            for item in _as_list(raw.get("transaction_fees"))
            if isinstance(item, dict)
        ]
        other_fees = [
            fee for fee in (OtherFee.from_dict(item) for item in _as_list(raw.get("other_fees")))
            if fee is not None
        ]
        return cls(
            custody_fee=CustodyFee.from_dict(raw.get("custody_fee")),
            transaction_fees=transaction_fees,
            fx_fees=FxFee.from_dict(raw.get("fx_fees")),
            other_fees=other_fees,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "custody_fee": self.custody_fee.to_dict() if self.custody_fee else None,
            "transaction_fees": [fee.to_dict() for fee in self.transaction_fees] or None,
            "fx_fees": self.fx_fees.to_dict() if self.fx_fees else None,
            "other_fees": [fee.to_dict() for fee in self.other_fees] or None,
        }


@dataclass(frozen=True)
class BrokerPricing:
    """Canonical broker record in the structured (legacy) shape."""

    broker_name: str
    pricing_model: PricingModel = field(default_factory=PricingModel)
    country: str = "Belgium"
    source_url: str = ""
    source_type: str = "broker_website"
    source_last_checked: Optional[str] = None
    account_type: str = "private"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "BrokerPricing":
        return cls(
            broker_name=_as_str(raw.get("broker_name")),
            pricing_model=PricingModel.from_dict(raw.get("pricing_model")),
            country=_as_str(raw.get("country")),
            source_url=_as_str(raw.get("source_url")),
            source_type=_as_str(raw.get("source_type")),
            source_last_checked=raw.get("source_last_checked") if isinstance(raw.get("source_last_checked"), str) else None,
            account_type=_as_str(raw.get("account_type")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "broker_name": self.broker_name,
            "country": self.country,
            "source_url": self.source_url,
            "source_type": self.source_type,
            "source_last_checked": self.source_last_checked,
            "account_type": self.account_type,
            "pricing_model": self.pricing_model.to_dict(),
        }


@dataclass(frozen=True)
class FlattenedPricingRow:
    """One displayable row: a broker fee line plus example costs."""

    id: str
    broker: str
    instrument_type: str
    market: str
    pricing_type: str
    base_fee: Optional[float]
    percent_fee: Optional[float]
    min_fee: Optional[float]
    max_fee: Optional[float]
    custody_fee_type: str
    custody_fee_value: Optional[float]
    custody_frequency: str
    fx_fee_type: str
    fx_fee_value: Optional[float]
    other_fees_summary: str
    example_fee_1000: Optional[float]
    example_fee_5000: Optional[float]
    example_fee_10000: Optional[float]
    source_url: str = ""

    def as_dict(self) -> Dict[str, Any]:
        """Render with the camelCase keys the presentation layer reads."""
        return {
            "id": self.id,
            "broker": self.broker,
            "instrumentType": self.instrument_type,
            "market": self.market,
            "pricingType": self.pricing_type,
            "baseFee": self.base_fee,
            "percentFee": self.percent_fee,
            "minFee": self.min_fee,
            "maxFee": self.max_fee,
            "custodyFeeType": self.custody_fee_type,
            "custodyFeeValue": self.custody_fee_value,
            "custodyFrequency": self.custody_frequency,
            "fxFeeType": self.fx_fee_type,
            "fxFeeValue": self.fx_fee_value,
            "otherFeesSummary": self.other_fees_summary,
            "exampleFee1000": self.example_fee_1000,
            "exampleFee5000": self.example_fee_5000,
            "exampleFee10000": self.example_fee_10000,
            "sourceUrl": self.source_url,
        }


ROW_FIELDS = [
    "id",
    "broker",
    "instrumentType",
    "market",
    "pricingType",
    "baseFee",
    "percentFee",
    "minFee",
    "maxFee",
    "custodyFeeType",
    "custodyFeeValue",
    "custodyFrequency",
    "fxFeeType",
    "fxFeeValue",
    "otherFeesSummary",
    "exampleFee1000",
    "exampleFee5000",
    "exampleFee10000",
    "sourceUrl",
]

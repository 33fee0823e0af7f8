"""Tests for format classification, keyword rules and schema conversion."""
from __future__ import annotations

import pytest

from be_fees.models import PRICING_LINEAR, PRICING_TIERED, PricingTier, StructuredFormula
from be_fees.normalization.classifier import any_new_format, is_new_format
from be_fees.normalization.converter import (
    convert_broker,
    convert_new_format_to_structured,
    parse_fee_structure,
)
from be_fees.normalization.rules import (
    DEFAULT_RULES,
    KeywordRule,
    RuleTables,
    infer_instrument_type,
    infer_market,
)


def _new_format_broker(**overrides):
    record = {
        "broker_name": "Rebel",
        "fee_categories": [
            {
                "category": "Trading - Equities",
                "description": "Shares",
                "tiers": [
                    {
                        "volume_or_condition": "Euronext Brussels – normal charge",
                        "fee_structure": "1% Min. €40",
                    }
                ],
            }
        ],
    }
    record.update(overrides)
    return record


class TestClassifier:
    @pytest.mark.parametrize(
        "extra",
        [
            {"fee_categories": []},
            {"special_fees": []},
            {"custody_charges": "None"},
            {"summary": "Cheap broker"},
        ],
    )
    def test_new_format_markers(self, extra):
        assert is_new_format({"broker_name": "Bolero", **extra})

    def test_requires_string_broker_name(self):
        assert not is_new_format({"broker_name": 3, "summary": "x"})
        assert not is_new_format({"fee_categories": []})

    def test_legacy_record_is_not_new_format(self):
        legacy = {"broker_name": "Bolero", "pricing_model": {"transaction_fees": []}}
        assert not is_new_format(legacy)

    @pytest.mark.parametrize("payload", [None, "Bolero", 12, ["broker_name"]])
    def test_non_mapping_payloads(self, payload):
        assert not is_new_format(payload)

    def test_classifier_is_idempotent_on_converted_output(self):
        converted = convert_new_format_to_structured([_new_format_broker()])
        assert not any_new_format(converted)
        assert not any_new_format([broker.to_dict() for broker in converted])


class TestRules:
    @pytest.mark.parametrize(
        "category, expected",
        [
            ("Trading - Equities", "Equities"),
            ("Index OPTIONS", "Options"),
            ("Bonds (secondary market)", "Bonds"),
            ("Investment funds", "Funds"),
            ("Bond funds", "Bonds"),
            ("", "Equities"),
        ],
    )
    def test_instrument_type(self, category, expected):
        assert infer_instrument_type(category) == expected

    @pytest.mark.parametrize(
        "condition, expected",
        [
            ("Euronext Brussels – normal charge", "Euronext"),
            ("Paris and Amsterdam", "Euronext"),
            ("XETRA", "Frankfurt"),
            ("London Stock Exchange", "London"),
            ("SIX Swiss Exchange", "Zurich"),
            ("US stocks (NYSE, Nasdaq)", "USA"),
            ("CBOE listed", "USA"),
            ("Toronto TSX", "Canada"),
            ("Nasdaq Helsinki", "Helsinki"),
            ("OMX Stockholm", "Stockholm"),
            ("OMX Kopenhagen", "Copenhagen"),
            ("Nasdaq OMX", "Oslo"),
            ("Index options on BEL20", "Index Options"),
            ("Other markets", "Euronext"),
        ],
    )
    def test_market(self, condition, expected):
        assert infer_market(condition) == expected

    def test_short_codes_match_whole_words_only(self):
        assert infer_market("Bonus shares") == "Euronext"
        assert infer_market("Sixty orders") == "Euronext"

    def test_brussels_takes_priority_over_later_rules(self):
        assert infer_market("Brussels, also London") == "Euronext"

    def test_custom_tables(self):
        tables = RuleTables(
            market_rules=(KeywordRule("Madrid", ("madrid", "bme")),) + DEFAULT_RULES.market_rules,
            default_market="Other",
        )
        assert tables.market("BME Madrid") == "Madrid"
        assert tables.market("Somewhere else") == "Other"

    def test_required_keywords_must_all_appear(self):
        rule = KeywordRule("Euronext Options", ("euronext",), required=("option",))
        assert rule.matches("Euronext Brussels options")
        assert not rule.matches("Euronext Brussels shares")
        xetra_options = KeywordRule("Frankfurt Options", ("xetra",), required=("OPTION",))
        assert xetra_options.matches("XETRA options")
        assert not xetra_options.matches("Xetra shares")


class TestParseFeeStructure:
    def test_free(self):
        formula, tiers = parse_fee_structure("Free", "")
        assert formula == StructuredFormula(base=0.0)
        assert tiers is None

    def test_percentage_with_explicit_minimum(self):
        formula, tiers = parse_fee_structure("1% Min. €40", "euronext brussels – normal charge")
        assert formula == StructuredFormula(percent=1.0, min=40.0)
        assert tiers is None

    def test_percentage_with_worded_minimum(self):
        formula, _ = parse_fee_structure("0.35% with a minimum of €1", "")
        assert formula == StructuredFormula(percent=0.35, min=1.0)

    def test_flat_plus_percentage(self):
        formula, _ = parse_fee_structure("€3 + 0.1%", "")
        assert formula == StructuredFormula(base=3.0, percent=0.1)

    def test_worded_cap_is_a_maximum(self):
        formula, _ = parse_fee_structure("0.25% max €50", "")
        assert formula == StructuredFormula(percent=0.25, max=50.0)

    def test_explicit_max_is_not_a_flat_charge(self):
        formula, _ = parse_fee_structure("0.25% Min. €15 Max. €50", "")
        assert formula == StructuredFormula(percent=0.25, min=15.0, max=50.0)

    def test_flat_amount_without_range(self):
        formula, tiers = parse_fee_structure("€7.50 per order", "euronext brussels")
        assert formula.base == 7.5
        assert tiers is None

    def test_settlement_days_are_not_a_tier(self):
        formula, tiers = parse_fee_structure("€7.50", "euronext brussels, settlement t+2 - 3 days")
        assert formula.base == 7.5
        assert tiers is None

    def test_flat_amount_with_range_becomes_tier(self):
        formula, tiers = parse_fee_structure("€15", "from €2,500.01 to €70,000")
        assert tiers == [PricingTier(from_amount=2500.01, to_amount=70000.0, fee=15.0, currency="EUR")]
        assert formula.base is None

    def test_non_euro_amount_is_not_parsed(self):
        formula, tiers = parse_fee_structure("$15", "")
        assert formula == StructuredFormula()
        assert tiers is None

    def test_unreadable_text(self):
        formula, tiers = parse_fee_structure("See tariff sheet", "")
        assert formula == StructuredFormula()
        assert tiers is None


class TestConverter:
    def test_transaction_fee_fields(self):
        broker = convert_broker(_new_format_broker())
        (fee,) = broker.pricing_model.transaction_fees
        assert fee.instrument_type == "Equities"
        assert fee.market == "Euronext"
        assert fee.pricing_type == PRICING_LINEAR
        assert fee.formula_human == "1% Min. €40"
        assert broker.country == "Belgium"

    def test_tiered_line(self):
        record = _new_format_broker(
            fee_categories=[
                {
                    "category": "Trading - Equities",
                    "tiers": [{"volume_or_condition": "Euronext Brussels up to €2,500", "fee_structure": "€7.50"}],
                }
            ]
        )
        (fee,) = convert_broker(record).pricing_model.transaction_fees
        assert fee.pricing_type == PRICING_TIERED
        assert fee.tiers == [PricingTier(from_amount=None, to_amount=2500.0, fee=7.5, currency="EUR")]

    def test_special_fees(self):
        record = _new_format_broker(
            special_fees=[
                {"description": "Currency conversion", "amount": "0.5%", "when_applied": "foreign trades"},
                {"description": "Connectivity fee", "amount": "€2.50", "when_applied": "Annual, per exchange"},
                {"description": "Transfer out", "amount": "on request", "when_applied": "per line"},
            ]
        )
        pricing = convert_broker(record).pricing_model
        fx, connectivity, transfer = pricing.other_fees
        assert (fx.type, fx.value, fx.frequency) == ("percentage", 0.5, "on transaction")
        assert (connectivity.type, connectivity.value, connectivity.frequency) == ("fixed", 2.5, "yearly")
        assert transfer.value is None
        assert pricing.fx_fees is not None
        assert pricing.fx_fees.value == 0.5

    def test_fx_fee_without_percentage(self):
        record = _new_format_broker(
            special_fees=[{"description": "Currency exchange", "amount": "€5", "when_applied": "per trade"}]
        )
        fx = convert_broker(record).pricing_model.fx_fees
        assert fx.type == "percentage"
        assert fx.value is None

    def test_no_fx_fee_without_currency_special_fee(self):
        record = _new_format_broker(special_fees=[{"description": "Dividend", "amount": "€1", "when_applied": ""}])
        assert convert_broker(record).pricing_model.fx_fees is None

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("0.0242% per month", ("percentage", 0.0242, "monthly")),
            ("€25 per year", ("fixed", 25.0, "yearly")),
            ("Depends on portfolio", ("fixed", None, "yearly")),
        ],
    )
    def test_custody(self, text, expected):
        custody = convert_broker(_new_format_broker(custody_charges=text)).pricing_model.custody_fee
        assert (custody.type, custody.value, custody.frequency) == expected
        assert custody.notes == text

    def test_custody_none_marker(self):
        assert convert_broker(_new_format_broker(custody_charges="None")).pricing_model.custody_fee is None

    def test_error_records_are_dropped(self):
        brokers = [
            _new_format_broker(),
            _new_format_broker(broker_name="Broken", error="Failed to extract text"),
            "not a record",
        ]
        converted = convert_new_format_to_structured(brokers)
        assert [b.broker_name for b in converted] == ["Rebel"]

    def test_malformed_fields_do_not_raise(self):
        record = {
            "broker_name": "Odd",
            "fee_categories": [
                "bad",
                {"category": None, "tiers": [None, {"fee_structure": 12}]},
                {"category": "Bonds", "tiers": "none"},
            ],
            "special_fees": [{"amount": None}],
            "custody_charges": 5,
        }
        broker = convert_broker(record)
        (fee,) = broker.pricing_model.transaction_fees
        assert fee.instrument_type == "Equities"
        assert fee.formula_structured == StructuredFormula()
        assert broker.pricing_model.custody_fee is None
        assert broker.pricing_model.other_fees[0].value is None

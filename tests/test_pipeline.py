"""Tests for flattening broker payloads into pricing rows."""
from __future__ import annotations

import pytest

from be_fees.models import ROW_FIELDS, OtherFee
from be_fees.pipeline import flatten_api_data, generate_report, normalize_brokers, summarize_other_fees


def _legacy_broker(name="Keytrade Bank", **pricing_overrides):
    pricing_model = {
        "custody_fee": None,
        "transaction_fees": [
            {
                "instrument_type": "Equities",
                "market": "Euronext",
                "pricing_type": "linear",
                "formula_human": "€2 + 1%, min €5, max €50",
                "formula_structured": {"base": 2, "percent": 1, "min": 5, "max": 50},
                "tiers": None,
                "notes": "",
            },
            {
                "instrument_type": "Equities",
                "market": "Euronext",
                "pricing_type": "tiered",
                "formula_human": "€10 between €1,000 and €5,000",
                "formula_structured": {"base": None, "percent": None, "min": None, "max": None},
                "tiers": [{"from": 1000, "to": 5000, "fee": 10, "currency": "EUR"}],
                "notes": "",
            },
        ],
        "fx_fees": {"type": "percentage", "value": 0.25, "notes": "Currency conversion"},
        "other_fees": None,
    }
    pricing_model.update(pricing_overrides)
    return {
        "broker_name": name,
        "country": "Belgium",
        "source_url": "https://www.keytradebank.be/en/pricing/",
        "source_type": "broker_website",
        "account_type": "private",
        "pricing_model": pricing_model,
    }


ROUND_TRIP_BROKER = {
    "broker_name": "Rebel",
    "fee_categories": [
        {
            "category": "Trading - Equities",
            "description": "Shares and ETFs",
            "tiers": [
                {
                    "volume_or_condition": "Euronext Brussels – normal charge",
                    "fee_structure": "1% Min. €40",
                }
            ],
        }
    ],
}


class TestFlattenLegacy:
    def test_one_row_per_transaction_fee(self):
        rows = flatten_api_data([_legacy_broker()])
        assert [row.id for row in rows] == [
            "Keytrade Bank-Equities-Euronext-0",
            "Keytrade Bank-Equities-Euronext-1",
        ]

    def test_example_fees(self):
        linear, tiered = flatten_api_data([_legacy_broker()])
        assert (linear.example_fee_1000, linear.example_fee_5000, linear.example_fee_10000) == (12.0, 50.0, 50.0)
        assert (tiered.example_fee_1000, tiered.example_fee_5000, tiered.example_fee_10000) == (10.0, 10.0, None)

    def test_formula_and_ancillary_fields(self):
        row = flatten_api_data([_legacy_broker()])[0]
        assert (row.base_fee, row.percent_fee, row.min_fee, row.max_fee) == (2.0, 1.0, 5.0, 50.0)
        assert row.custody_fee_type == ""
        assert row.custody_fee_value is None
        assert (row.fx_fee_type, row.fx_fee_value) == ("percentage", 0.25)
        assert row.other_fees_summary == ""
        assert row.source_url == "https://www.keytradebank.be/en/pricing/"

    def test_broker_without_pricing_model_yields_no_rows(self):
        assert flatten_api_data([{"broker_name": "Empty"}, 42, None]) == []


class TestFlattenNewFormat:
    def test_round_trip_scenario(self):
        (row,) = flatten_api_data([ROUND_TRIP_BROKER])
        assert row.id == "Rebel-Equities-Euronext-0"
        assert row.pricing_type == "linear"
        assert row.example_fee_1000 == 40.0
        assert row.example_fee_5000 == 50.0
        assert row.example_fee_10000 == 100.0

    def test_error_record_contributes_no_rows(self):
        broken = dict(ROUND_TRIP_BROKER, broker_name="Broken", error="Failed to extract text")
        rows = flatten_api_data([ROUND_TRIP_BROKER, broken])
        assert {row.broker for row in rows} == {"Rebel"}

    def test_format_is_decided_for_the_whole_list(self):
        # One new-format record sends the legacy record through the converter too.
        rows = flatten_api_data([_legacy_broker(), ROUND_TRIP_BROKER])
        assert [row.broker for row in rows] == ["Rebel"]

    def test_ancillary_summary(self):
        broker = dict(
            ROUND_TRIP_BROKER,
            custody_charges="0.0242% per month",
            special_fees=[
                {"description": "Currency conversion", "amount": "0.5%", "when_applied": "foreign trades"},
                {"description": "Transfer out", "amount": "ask your branch", "when_applied": ""},
            ],
        )
        (row,) = flatten_api_data([broker])
        assert (row.custody_fee_type, row.custody_fee_value, row.custody_frequency) == (
            "percentage",
            0.0242,
            "monthly",
        )
        assert row.fx_fee_value == 0.5
        assert row.other_fees_summary == (
            "Currency conversion (0.5 EUR/on transaction • foreign trades); Transfer out"
        )


@pytest.mark.parametrize("payload", [None, "brokers", {"broker_name": "Bolero"}, 7])
def test_non_list_payload_returns_empty(payload):
    assert flatten_api_data(payload) == []
    assert normalize_brokers(payload) == []


class TestSummarizeOtherFees:
    def test_missing_value_is_not_zero(self):
        unknown = OtherFee(name="Dividend fee", type="fixed", value=None, frequency="yearly")
        free = OtherFee(name="Dividend fee", type="fixed", value=0.0, frequency="yearly")
        assert summarize_other_fees([unknown]) == "Dividend fee"
        assert summarize_other_fees([free]) == "Dividend fee (0 EUR/yearly)"

    def test_parts_are_omitted_when_missing(self):
        fee = OtherFee(name="Connectivity", type="fixed", value=2.5, currency="", frequency="")
        assert summarize_other_fees([fee]) == "Connectivity (2.5)"

    def test_empty(self):
        assert summarize_other_fees(None) == ""
        assert summarize_other_fees([]) == ""


def test_generate_report_uses_stable_keys():
    report = generate_report(flatten_api_data([ROUND_TRIP_BROKER]))
    assert list(report[0]) == ROW_FIELDS
    assert report[0]["exampleFee10000"] == 100.0


def test_large_legacy_base_still_flattens():
    broker = {
        "broker_name": "Outlier",
        "pricing_model": {"transaction_fees": [{"formula_structured": {"base": 1e28}}]},
    }
    rows = flatten_api_data([broker, _legacy_broker()])
    assert [row.broker for row in rows] == ["Outlier", "Keytrade Bank", "Keytrade Bank"]
    assert rows[0].example_fee_1000 == 1e28

"""Keyword rule tables mapping free text onto instrument types and markets.

Rules are evaluated top to bottom and the first match wins, so the order of
each table is part of its meaning. Matching is case-insensitive throughout.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Tuple


def _keyword_matches(keyword: str, text: str) -> bool:
    # Short venue codes ("us", "six", "omx") only count as whole words.
    if len(keyword) <= 3:
        return re.search(rf"\b{re.escape(keyword)}\b", text) is not None
    return keyword in text


@dataclass(frozen=True)
class KeywordRule:
    """Assigns ``label`` when the text contains any of ``keywords``.

    A rule with ``required`` keywords also needs every one of them present.
    """

    label: str
    keywords: Tuple[str, ...]
    required: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "keywords", tuple(k.lower() for k in self.keywords))
        object.__setattr__(self, "required", tuple(k.lower() for k in self.required))

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        if not all(_keyword_matches(keyword, lowered) for keyword in self.required):
            return False
        return any(_keyword_matches(keyword, lowered) for keyword in self.keywords)


def classify(text: str, rules: Iterable[KeywordRule], default: str) -> str:
    """Return the label of the first matching rule, or ``default``."""
    if not isinstance(text, str):
        return default
    for rule in rules:
        if rule.matches(text):
            return rule.label
    return default


DEFAULT_INSTRUMENT = "Equities"
DEFAULT_MARKET = "Euronext"

INSTRUMENT_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule("Options", ("option",)),
    KeywordRule("Bonds", ("bond",)),
    KeywordRule("Funds", ("fund",)),
)

MARKET_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule("Euronext", ("brussels", "amsterdam", "paris")),
    KeywordRule("Frankfurt", ("frankfurt", "xetra")),
    KeywordRule("London", ("london", "liffe")),
    KeywordRule("Zurich", ("zurich", "six")),
    KeywordRule("USA", ("us", "usa", "cboe")),
    KeywordRule("Canada", ("canada", "tsx")),
    KeywordRule("Helsinki", ("helsinki",)),
    KeywordRule("Stockholm", ("stockholm",)),
    KeywordRule("Copenhagen", ("copenhagen", "kopenhagen")),
    KeywordRule("Oslo", ("oslo", "omx")),
    KeywordRule("Index Options", ("index",)),
)


@dataclass(frozen=True)
class RuleTables:
    """The instrument and market tables used by one normalization pass."""

    instrument_rules: Tuple[KeywordRule, ...] = INSTRUMENT_RULES
    market_rules: Tuple[KeywordRule, ...] = MARKET_RULES
    default_instrument: str = DEFAULT_INSTRUMENT
    default_market: str = DEFAULT_MARKET

    def instrument_type(self, category: str) -> str:
        return classify(category, self.instrument_rules, self.default_instrument)

    def market(self, condition: str) -> str:
        return classify(condition, self.market_rules, self.default_market)


DEFAULT_RULES = RuleTables()


def infer_instrument_type(category: str, rules: RuleTables = DEFAULT_RULES) -> str:
    return rules.instrument_type(category)


def infer_market(condition: str, rules: RuleTables = DEFAULT_RULES) -> str:
    return rules.market(condition)

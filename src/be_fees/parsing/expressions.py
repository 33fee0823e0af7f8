"""Extraction of numeric facts from free-text fee formulas.

Broker fee descriptions arrive as strings such as ``"0.35% Min. €1"`` or
``"€7.50 per order"``. The helpers here pull out the single numbers the
normalizer needs. None of them raise: a fragment that cannot be read gives
``None`` (or an empty dict) and the caller decides what that means.

Only the euro sign is recognised as an amount marker. Amounts written with
``$`` or ``£`` are not parsed.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

_NUMBER = r"\d+(?:\.\d+)?"
_GROUPED_NUMBER = r"\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?"

PERCENT_RE = re.compile(rf"({_NUMBER})\s*%")
EURO_AMOUNT_RE = re.compile(rf"€\s*({_NUMBER})")
MIN_RE = re.compile(rf"min\.\s*€?\s*({_NUMBER})", re.IGNORECASE)
MAX_RE = re.compile(rf"max\.\s*€?\s*({_NUMBER})", re.IGNORECASE)
MIN_WORD_RE = re.compile(r"\bmin", re.IGNORECASE)
MAX_WORD_RE = re.compile(r"\b(?:max|cap|up\s+to)", re.IGNORECASE)

RANGE_RE = re.compile(
    rf"(?:from\s*)?€?\s*({_GROUPED_NUMBER})\s*€?\s*(to|-|–)\s*€?\s*({_GROUPED_NUMBER})",
    re.IGNORECASE,
)
UP_TO_RE = re.compile(rf"(?:up\s+to|until|below|under)\s*€?\s*({_GROUPED_NUMBER})", re.IGNORECASE)
ABOVE_RE = re.compile(rf"(?:above|over|more\s+than|from)\s*€?\s*({_GROUPED_NUMBER})", re.IGNORECASE)

CURRENCY_SYMBOLS = ("€", "$", "£")


def _first_number(pattern: re.Pattern, text: Any) -> Optional[float]:
    if not isinstance(text, str):
        return None
    match = pattern.search(text)
    if not match:
        return None
    return float(match.group(1))


def _grouped(value: str) -> float:
    return float(value.replace(",", ""))


def extract_percentage(text: Any) -> Optional[float]:
    """Return the first number directly followed by a percent sign."""
    return _first_number(PERCENT_RE, text)


def extract_currency_amount(text: Any) -> Optional[float]:
    """Return the first number preceded by a euro sign."""
    return _first_number(EURO_AMOUNT_RE, text)


def extract_min_max(text: Any) -> Dict[str, float]:
    """Read explicit ``Min.``/``Max.`` bounds; each key is present only if found."""
    result: Dict[str, float] = {}
    minimum = _first_number(MIN_RE, text)
    maximum = _first_number(MAX_RE, text)
    if minimum is not None:
        result["min"] = minimum
    if maximum is not None:
        result["max"] = maximum
    return result


def extract_range(text: Any) -> Optional[Tuple[Optional[float], Optional[float]]]:
    """Read an amount range from a tier condition.

    Understands ``from €2,500 to €5,000``, ``€2500 - €5000``, ``up to €2,500``
    and ``above €50,000``. A dash range needs a euro sign or a four-digit
    amount on one side. Returns ``(from, to)`` with ``None`` for an open
    side, or ``None`` when the text carries no range at all.
    """
    if not isinstance(text, str):
        return None
    for match in RANGE_RE.finditer(text):
        lower, upper = _grouped(match.group(1)), _grouped(match.group(3))
        # A bare dash between small numbers ("T+2 - 3 days") is not an amount range.
        if match.group(2).lower() == "to" or "€" in match.group(0) or max(lower, upper) >= 1000:
            return lower, upper
    match = UP_TO_RE.search(text)
    if match:
        return None, _grouped(match.group(1))
    match = ABOVE_RE.search(text)
    if match:
        return _grouped(match.group(1)), None
    logger.debug(f"No amount range in condition {text!r}")
    return None


def mentions_currency_amount(text: Any) -> bool:
    """True when the text contains any currency symbol."""
    return isinstance(text, str) and any(symbol in text for symbol in CURRENCY_SYMBOLS)


def mentions_minimum(text: Any) -> bool:
    """True when the text talks about a minimum ("min", "minimum", "Min.")."""
    return isinstance(text, str) and MIN_WORD_RE.search(text) is not None


def mentions_maximum(text: Any) -> bool:
    """True when the text talks about a cap ("max", "maximum", "capped at", "up to")."""
    return isinstance(text, str) and MAX_WORD_RE.search(text) is not None

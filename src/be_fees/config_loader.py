"""Utilities for loading keyword rule tables from YAML files."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

import yaml

from .normalization.rules import DEFAULT_RULES, KeywordRule, RuleTables

logger = logging.getLogger(__name__)


def _load_yaml(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def default_rules_path() -> Path:
    """Resolve the fee_rules.yaml file path."""
    cwd_path = Path("data") / "fee_rules.yaml"
    if cwd_path.exists():
        return cwd_path
    repo_root = Path(__file__).resolve().parents[2]
    return repo_root / "data" / "fee_rules.yaml"


def _parse_rules(entries: Any, section: str, path: Path) -> Tuple[KeywordRule, ...]:
    if not isinstance(entries, list):
        raise ValueError(f"'{section}' in {path} must be a list of rules")
    rules = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"Rule #{position} of '{section}' in {path} is not a mapping")
        label = entry.get("label")
        keywords = entry.get("keywords")
        if not isinstance(label, str) or not label:
            raise ValueError(f"Rule #{position} of '{section}' in {path} has no label")
        if isinstance(keywords, str):
            keywords = [keywords]
        if not isinstance(keywords, list) or not keywords:
            raise ValueError(f"Rule '{label}' of '{section}' in {path} has no keywords")
        required = entry.get("required") or []
        if isinstance(required, str):
            required = [required]
        if not isinstance(required, list):
            raise ValueError(f"Rule '{label}' of '{section}' in {path} has invalid required keywords")
        rules.append(
            KeywordRule(
                label=label,
                keywords=tuple(str(k) for k in keywords),
                required=tuple(str(k) for k in required),
            )
        )
    return tuple(rules)


def load_rule_tables(path: Path) -> RuleTables:
    """Load instrument and market rule tables from the provided YAML file.

    Sections missing from the file keep the built-in tables.
    """

    raw = _load_yaml(path)
    if not isinstance(raw, dict):
        raise ValueError(f"Expected a mapping at the top of {path}")

    instrument_rules = DEFAULT_RULES.instrument_rules
    market_rules = DEFAULT_RULES.market_rules
    if "instrument_rules" in raw:
        instrument_rules = _parse_rules(raw["instrument_rules"], "instrument_rules", path)
    if "market_rules" in raw:
        market_rules = _parse_rules(raw["market_rules"], "market_rules", path)

    tables = RuleTables(
        instrument_rules=instrument_rules,
        market_rules=market_rules,
        default_instrument=str(raw.get("default_instrument", DEFAULT_RULES.default_instrument)),
        default_market=str(raw.get("default_market", DEFAULT_RULES.default_market)),
    )
    logger.info(
        f"Loaded {len(tables.instrument_rules)} instrument rules and "
        f"{len(tables.market_rules)} market rules from {path}"
    )
    return tables


def load_rule_tables_from_directory(paths: Iterable[Path]) -> RuleTables:
    """Return the tables of the first existing YAML file, or the built-in ones."""

    for path in paths:
        if path.exists() and path.suffix in {".yml", ".yaml"}:
            return load_rule_tables(path)
    logger.debug("No rule file found, using built-in keyword tables")
    return DEFAULT_RULES


def load_default_rule_tables(path: Optional[Path] = None) -> RuleTables:
    """Load ``data/fee_rules.yaml`` when present, falling back to built-in tables."""
    return load_rule_tables_from_directory([path or default_rules_path()])

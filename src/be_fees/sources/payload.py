"""Reading broker payloads from disk and writing flattened rows back out."""
from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Iterable, List

import yaml

from ..models import ROW_FIELDS, FlattenedPricingRow

logger = logging.getLogger(__name__)


def load_broker_payload(path: Path) -> List[Any]:
    """Load a list of broker records from a JSON or YAML file.

    A top-level mapping with a ``brokers`` key is unwrapped.
    """

    with path.open("r", encoding="utf-8-sig") as handle:
        if path.suffix in {".yml", ".yaml"}:
            raw = yaml.safe_load(handle)
        else:
            raw = json.load(handle)

    if isinstance(raw, dict) and "brokers" in raw:
        raw = raw["brokers"]
    if not isinstance(raw, list):
        raise ValueError(f"Expected a list of broker records in {path}")
    logger.info(f"Loaded {len(raw)} broker records from {path}")
    return raw


def export_rows_to_csv(rows: Iterable[FlattenedPricingRow], path: Path) -> None:
    """Write flattened pricing rows to a CSV file."""

    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=ROW_FIELDS)
        writer.writeheader()
        for row in rows:
            writer.writerow({key: "" if value is None else value for key, value in row.as_dict().items()})

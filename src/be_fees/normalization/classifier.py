"""Detection of the human-readable broker response format."""
from __future__ import annotations

from typing import Any, Iterable


def is_new_format(payload: Any) -> bool:
    """Return True for a broker record in the human-readable schema.

    Anything that does not clearly look like the new schema is treated as
    already normalized, so valid structured data is never converted twice.
    """
    if not isinstance(payload, dict):
        return False
    if not isinstance(payload.get("broker_name"), str):
        return False
    return (
        isinstance(payload.get("fee_categories"), list)
        or isinstance(payload.get("special_fees"), list)
        or isinstance(payload.get("custody_charges"), str)
        or isinstance(payload.get("summary"), str)
    )


def any_new_format(payloads: Iterable[Any]) -> bool:
    return any(is_new_format(payload) for payload in payloads)

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..config_loader import load_default_rule_tables
from ..evaluation.fee_calculator import (
    EXAMPLE_AMOUNTS,
    amount_key,
    calculate_all_fees,
    generate_explanation,
)
from ..models import TransactionFee
from ..normalization.rules import RuleTables
from ..pipeline import flatten_api_data, generate_report, normalize_brokers


# ========================================================================================
# PYDANTIC MODELS
# ========================================================================================

class CalculateFeeRequest(BaseModel):
    """Request model for evaluating one structured transaction fee."""
    transaction_fee: Dict[str, Any]
    amounts: List[float] = Field(default_factory=lambda: [float(a) for a in EXAMPLE_AMOUNTS])


class CalculateFeeResponse(BaseModel):
    """Response model with the fee and its explanation for each amount."""
    instrument_type: str
    market: str
    pricing_type: str
    fees: Dict[str, Optional[float]]
    explanations: Dict[str, str]


# ========================================================================================
# FASTAPI APPLICATION
# ========================================================================================

app = FastAPI(title="be-fees Fee Normalization API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # must stay False with wildcard origins
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_rule_tables() -> RuleTables:
    try:
        return load_default_rule_tables()
    except (OSError, ValueError) as exc:
        logger.error(f"Failed to load keyword rules: {exc}")
        raise HTTPException(status_code=500, detail=f"Failed to load keyword rules: {exc}")


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/normalize")
def normalize(payload: Any = Body(...)) -> Dict[str, Any]:
    """Return the payload in the structured broker shape."""
    brokers = normalize_brokers(payload, _get_rule_tables())
    return {"brokers": [broker.to_dict() for broker in brokers]}


@app.post("/pricing-rows")
def pricing_rows(payload: Any = Body(...)) -> List[Dict[str, Any]]:
    """Flatten a broker payload (either schema) into pricing rows."""
    rows = flatten_api_data(payload, _get_rule_tables())
    return generate_report(rows)


@app.post("/calculate-fee", response_model=CalculateFeeResponse)
def calculate(request: CalculateFeeRequest) -> CalculateFeeResponse:
    if not request.amounts:
        raise HTTPException(status_code=422, detail="At least one amount is required.")
    if any(not math.isfinite(amount) or amount < 0 for amount in request.amounts):
        raise HTTPException(status_code=422, detail="Amounts must be finite and not negative.")

    fee = TransactionFee.from_dict(request.transaction_fee)
    fees = calculate_all_fees(fee, request.amounts)
    explanations = {amount_key(amount): generate_explanation(fee, amount) for amount in request.amounts}
    return CalculateFeeResponse(
        instrument_type=fee.instrument_type,
        market=fee.market,
        pricing_type=fee.pricing_type,
        fees=fees,
        explanations=explanations,
    )

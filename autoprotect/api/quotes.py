"""Public price estimate endpoint"""
import logging
from fastapi import APIRouter, Request
from pydantic import ValidationError

from autoprotect.core.clock import current_year
from autoprotect.core.errors import error_response
from autoprotect.core.metrics import quotes_estimated
from autoprotect.schemas.common import DataResponse
from autoprotect.schemas.quote import PricingEstimate, QuoteEstimateRequest
from autoprotect.services.pricing import calculate_quote

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/quote", tags=["quotes"])


@router.post(
    "/estimate",
    response_model=DataResponse[PricingEstimate],
    responses={400: {"description": "Invalid quote data"}},
)
async def estimate_quote(request: Request):
    # Body is validated here so every failure shares one message
    try:
        body = await request.json()
        req = QuoteEstimateRequest.model_validate(body)
    except ValidationError as e:
        return error_response(400, "Invalid quote data", e.errors())
    except ValueError:
        return error_response(400, "Invalid quote data")

    estimate = calculate_quote(req.vehicle, req.coverage, req.location, current_year=current_year())
    quotes_estimated.labels(recommended=str(estimate.recommended)).inc()

    return {"data": estimate, "message": "Quote calculated successfully"}

from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, StrictStr
from typing import List, Optional, Union
from datetime import datetime
from autoprotect.core.enums import PlanType, QuoteStatus


class VehicleFacts(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: StrictInt
    make: StrictStr
    model: StrictStr
    odometer: StrictInt


class CoverageSelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    plan: PlanType
    deductible: Union[StrictInt, StrictFloat]


class LocationFacts(BaseModel):
    model_config = ConfigDict(frozen=True)

    zip: StrictStr
    state: StrictStr


class QuoteEstimateRequest(BaseModel):
    vehicle: VehicleFacts
    coverage: CoverageSelection
    location: LocationFacts


class PlanPrice(BaseModel):
    monthly: int
    total: int
    features: List[str]


class PlanPrices(BaseModel):
    powertrain: PlanPrice
    gold: PlanPrice
    platinum: PlanPrice


class PricingEstimate(BaseModel):
    plans: PlanPrices
    recommended: PlanType
    disclaimers: List[str]


class CoverageAssign(BaseModel):
    """Quote a single plan to a lead; prices are entered in dollars."""
    plan: PlanType
    deductible: int
    term_months: int = 36
    price_monthly: float
    expiration_miles: Optional[int] = None
    payment_option: Optional[str] = None


class QuoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_id: int
    plan: PlanType
    deductible: int
    term_months: int
    price_monthly_cents: int
    price_total_cents: int
    fees_cents: int
    taxes_cents: int
    status: QuoteStatus
    breakdown: Optional[dict] = None
    valid_until: Optional[datetime] = None
    created_by: Optional[int] = None
    created_at: datetime

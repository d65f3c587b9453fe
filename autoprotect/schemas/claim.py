from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from autoprotect.core.enums import ClaimStatus
from autoprotect.utils.validators import normalize_email, optional_text


class ClaimBase(BaseModel):
    first_name: str = Field(min_length=1, max_length=120)
    last_name: str = Field(min_length=1, max_length=120)
    email: str
    phone: str = Field(min_length=1, max_length=40)
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    make: Optional[str] = None
    model: Optional[str] = None
    trim: Optional[str] = None
    vin: Optional[str] = None
    serial: Optional[str] = None
    odometer: Optional[int] = Field(default=None, ge=0)
    current_odometer: Optional[int] = Field(default=None, ge=0)
    claim_reason: Optional[str] = None
    message: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        v = normalize_email(v)
        if not v:
            raise ValueError("Email is required")
        return v

    @field_validator("vin")
    @classmethod
    def _vin(cls, v):
        v = optional_text(v)
        return v.upper() if v else v


class ClaimCreate(ClaimBase):
    policy_id: Optional[int] = None


class CustomerClaimCreate(BaseModel):
    policy_id: int
    phone: str = Field(min_length=1, max_length=40)
    current_odometer: Optional[int] = Field(default=None, ge=0)
    claim_reason: Optional[str] = None
    message: str = Field(min_length=1)


class ClaimUpdate(BaseModel):
    status: Optional[ClaimStatus] = None
    next_estimate: Optional[Decimal] = None
    next_payment: Optional[Decimal] = None
    agent_claim_number: Optional[str] = None
    previous_notes: Optional[str] = None
    claim_reason: Optional[str] = None
    current_odometer: Optional[int] = Field(default=None, ge=0)
    message: Optional[str] = None


class ClaimOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    policy_id: Optional[int] = None
    status: ClaimStatus
    next_estimate: Optional[Decimal] = None
    next_payment: Optional[Decimal] = None
    first_name: str
    last_name: str
    email: str
    phone: str
    year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    trim: Optional[str] = None
    vin: Optional[str] = None
    serial: Optional[str] = None
    odometer: Optional[int] = None
    current_odometer: Optional[int] = None
    claim_reason: Optional[str] = None
    agent_claim_number: Optional[str] = None
    message: str
    previous_notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

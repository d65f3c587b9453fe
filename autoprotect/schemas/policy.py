from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime
from autoprotect.core.enums import ChargeStatus, PolicyStatus
from autoprotect.utils.validators import split_recipients


class PolicyFields(BaseModel):
    package: Optional[str] = Field(default=None, max_length=40)
    status: Optional[PolicyStatus] = None
    expiration_miles: Optional[int] = Field(default=None, ge=0)
    expiration_date: Optional[datetime] = None
    deductible: Optional[int] = Field(default=None, ge=0)
    total_premium_cents: Optional[int] = Field(default=None, ge=0)
    down_payment_cents: Optional[int] = Field(default=None, ge=0)
    monthly_payment_cents: Optional[int] = Field(default=None, ge=0)
    total_payments: Optional[int] = Field(default=None, ge=0)
    policy_start_date: Optional[datetime] = None


class PolicyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_id: int
    package: Optional[str] = None
    status: PolicyStatus
    expiration_miles: Optional[int] = None
    expiration_date: Optional[datetime] = None
    deductible: Optional[int] = None
    total_premium_cents: Optional[int] = None
    down_payment_cents: Optional[int] = None
    monthly_payment_cents: Optional[int] = None
    total_payments: Optional[int] = None
    policy_start_date: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class PolicyFileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    policy_id: int
    file_name: str
    content_type: Optional[str] = None
    size: Optional[int] = None
    created_at: datetime


class ChargeCreate(BaseModel):
    description: str = Field(min_length=1)
    amount_cents: int = Field(ge=1)
    status: ChargeStatus = ChargeStatus.PENDING
    charged_at: Optional[datetime] = None
    reference: Optional[str] = None
    notes: Optional[str] = None


class ChargeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    policy_id: int
    customer_id: Optional[int] = None
    description: str
    amount_cents: int
    status: ChargeStatus
    charged_at: Optional[datetime] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class PaymentProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    policy_id: int
    payment_method: Optional[str] = None
    account_name: Optional[str] = None
    account_identifier: Optional[str] = None
    card_brand: Optional[str] = None
    card_last_four: Optional[str] = None
    card_expiry_month: Optional[int] = None
    card_expiry_year: Optional[int] = None
    billing_zip: Optional[str] = None
    autopay_enabled: bool = False
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None


class PaymentProfileUpdate(BaseModel):
    payment_method: Optional[str] = None
    account_name: Optional[str] = None
    account_identifier: Optional[str] = None
    card_brand: Optional[str] = None
    card_number: Optional[str] = None
    card_expiry_month: Optional[int] = Field(default=None, ge=1, le=12)
    card_expiry_year: Optional[int] = Field(default=None, ge=2000, le=2100)
    billing_zip: Optional[str] = None
    autopay_enabled: Optional[bool] = None
    notes: Optional[str] = None

    @field_validator("card_number")
    @classmethod
    def _card_number(cls, v):
        if v is None:
            return v
        digits = "".join(ch for ch in v if ch.isdigit())
        if not 13 <= len(digits) <= 19:
            raise ValueError("Card number must be 13-19 digits")
        return digits


class PolicyEmail(BaseModel):
    to: str
    subject: str = Field(min_length=1)
    body_html: str = Field(min_length=1)

    @field_validator("to")
    @classmethod
    def _recipients(cls, v):
        split_recipients(v)
        return v


class LeadConvert(PolicyFields):
    quote_id: Optional[int] = None
    send_email: bool = True

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime
from autoprotect.core.enums import ContractStatus


class ContractCreate(BaseModel):
    quote_id: int
    file_name: str = Field(min_length=1, max_length=255)
    file_data: str = Field(min_length=1)
    file_type: Optional[str] = None
    send_email: bool = True


class ContractOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_id: int
    quote_id: Optional[int] = None
    file_name: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    status: ContractStatus
    signature_name: Optional[str] = None
    signature_email: Optional[str] = None
    signed_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_last_four: Optional[str] = None
    payment_exp_month: Optional[int] = None
    payment_exp_year: Optional[int] = None
    billing_address_line1: Optional[str] = None
    billing_address_line2: Optional[str] = None
    billing_city: Optional[str] = None
    billing_state: Optional[str] = None
    billing_postal_code: Optional[str] = None
    billing_country: Optional[str] = None
    shipping_address_line1: Optional[str] = None
    shipping_address_line2: Optional[str] = None
    shipping_city: Optional[str] = None
    shipping_state: Optional[str] = None
    shipping_postal_code: Optional[str] = None
    shipping_country: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ContractDocument(ContractOut):
    data_url: str


class Address(BaseModel):
    line1: str = Field(min_length=1)
    line2: Optional[str] = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = "US"


class ContractSign(BaseModel):
    full_name: str = Field(min_length=1, max_length=160)
    email: Optional[str] = None
    consent: bool
    payment_method: str = "card"
    card_number: str
    card_cvv: str
    card_exp_month: int = Field(ge=1, le=12)
    card_exp_year: int = Field(ge=2000, le=2100)
    billing: Address
    shipping: Optional[Address] = None
    shipping_same_as_billing: bool = True
    payment_notes: Optional[str] = None

    @field_validator("card_number")
    @classmethod
    def _card_number(cls, v):
        digits = "".join(ch for ch in v if ch.isdigit())
        if not 13 <= len(digits) <= 19:
            raise ValueError("Card number must be 13-19 digits")
        return digits

    @field_validator("card_cvv")
    @classmethod
    def _cvv(cls, v):
        v = v.strip()
        if not v.isdigit() or not 3 <= len(v) <= 4:
            raise ValueError("CVV must be 3 or 4 digits")
        return v

    @model_validator(mode="after")
    def _consent_and_shipping(self):
        if not self.consent:
            raise ValueError("Consent is required to sign the contract")
        if not self.shipping_same_as_billing and self.shipping is None:
            raise ValueError("Shipping address is required")
        return self

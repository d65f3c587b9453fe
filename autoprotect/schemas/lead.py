from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, List, Optional, Union
from datetime import datetime
from autoprotect.core.enums import LeadStatus
from autoprotect.schemas.policy import PolicyFields
from autoprotect.utils.validators import normalize_email, optional_text


class VehicleCreate(BaseModel):
    year: int = Field(ge=1900, le=2100)
    make: str = Field(min_length=1, max_length=80)
    model: str = Field(min_length=1, max_length=80)
    trim: Optional[str] = None
    vin: Optional[str] = None
    odometer: int = Field(ge=0)
    usage: str = "personal"
    ev: bool = False

    @field_validator("vin")
    @classmethod
    def _vin(cls, v):
        v = optional_text(v)
        return v.upper() if v else v


class VehicleUpdate(BaseModel):
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    make: Optional[str] = Field(default=None, min_length=1, max_length=80)
    model: Optional[str] = Field(default=None, min_length=1, max_length=80)
    trim: Optional[str] = None
    vin: Optional[str] = None
    odometer: Optional[int] = Field(default=None, ge=0)
    usage: Optional[str] = None
    ev: Optional[bool] = None

    @field_validator("vin")
    @classmethod
    def _vin(cls, v):
        v = optional_text(v)
        return v.upper() if v else v


class VehicleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_id: int
    year: int
    make: str
    model: str
    trim: Optional[str] = None
    vin: Optional[str] = None
    odometer: int
    usage: Optional[str] = None
    ev: bool = False


class LeadContact(BaseModel):
    first_name: Optional[str] = Field(default=None, max_length=120)
    last_name: Optional[str] = Field(default=None, max_length=120)
    email: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=40)
    zip: Optional[str] = Field(default=None, max_length=20)
    state: Optional[str] = Field(default=None, max_length=20)

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        return normalize_email(v)

    @field_validator("first_name", "last_name", "phone", "zip")
    @classmethod
    def _strip(cls, v):
        return optional_text(v)

    @field_validator("state")
    @classmethod
    def _state(cls, v):
        v = optional_text(v)
        return v.upper() if v else v


class LeadCreate(LeadContact):
    consent_tcpa: bool = False
    source: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None


class LeadIntake(BaseModel):
    lead: LeadCreate
    vehicle: VehicleCreate


class LeadUpdate(LeadContact):
    status: Optional[LeadStatus] = None
    salesperson_email: Optional[str] = None
    shipping_address: Optional[str] = None
    shipping_city: Optional[str] = None
    shipping_state: Optional[str] = None
    shipping_zip: Optional[str] = None
    billing_address: Optional[str] = None
    billing_city: Optional[str] = None
    billing_state: Optional[str] = None
    billing_zip: Optional[str] = None
    shipping_same_as_billing: Optional[bool] = None

    @field_validator("salesperson_email")
    @classmethod
    def _salesperson(cls, v):
        return normalize_email(v)


class LeadOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    zip: Optional[str] = None
    state: Optional[str] = None
    status: LeadStatus
    tags: List[str] = []
    salesperson_email: Optional[str] = None
    card_last_four: Optional[str] = None
    card_expiry_month: Optional[str] = None
    card_expiry_year: Optional[str] = None
    shipping_address: Optional[str] = None
    shipping_city: Optional[str] = None
    shipping_state: Optional[str] = None
    shipping_zip: Optional[str] = None
    billing_address: Optional[str] = None
    billing_city: Optional[str] = None
    billing_state: Optional[str] = None
    billing_zip: Optional[str] = None
    shipping_same_as_billing: Optional[bool] = None
    consent_tcpa: Optional[bool] = None
    consent_timestamp: Optional[datetime] = None
    consent_ip: Optional[str] = None
    source: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class NoteCreate(BaseModel):
    content: str = Field(min_length=1)

    @field_validator("content")
    @classmethod
    def _content(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Note content is required")
        return v


class NoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    created_at: datetime


class LeadMetaUpdate(BaseModel):
    tags: Union[str, List[str]] = ""


class LeadSummary(BaseModel):
    lead: LeadOut
    vehicle: Optional[VehicleOut] = None
    quote_count: int = 0


class LeadStats(BaseModel):
    total_leads: int
    new_leads: int
    quoted_leads: int
    sold_leads: int
    conversion_rate: int
    by_status: Dict[str, int]


class AdminLeadCreate(BaseModel):
    lead: LeadUpdate
    vehicle: Optional[VehicleCreate] = None


class AdminLeadUpdate(BaseModel):
    lead: Optional[LeadUpdate] = None
    vehicle: Optional[VehicleUpdate] = None
    policy: Optional[PolicyFields] = None

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime
from autoprotect.schemas.lead import VehicleCreate
from autoprotect.utils.validators import normalize_email, optional_text


def _required_email(v: str) -> str:
    v = normalize_email(v)
    if not v:
        raise ValueError("Email is required")
    return v


class CustomerRegister(BaseModel):
    email: str
    password: str = Field(min_length=8)
    policy_id: int
    display_name: Optional[str] = Field(default=None, max_length=120)

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        return _required_email(v)


class CustomerLogin(BaseModel):
    email: str
    policy_id: Optional[int] = None
    lead_id: Optional[int] = None
    password: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        return _required_email(v)

    @model_validator(mode="after")
    def _credential(self):
        if self.policy_id is None and self.lead_id is None and not self.password:
            raise ValueError("Provide a policy ID, lead ID or password")
        return self


class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    display_name: Optional[str] = None
    last_login_at: Optional[datetime] = None
    created_at: datetime


class CustomerSession(BaseModel):
    customer: CustomerOut
    policy_ids: List[int] = []


class CustomerTokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    customer: CustomerOut
    policy_ids: List[int] = []


class PolicyRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    zip: Optional[str] = None
    state: Optional[str] = None
    vehicle: Optional[VehicleCreate] = None
    notes: Optional[str] = None

    @field_validator("first_name", "last_name", "phone", "zip", "notes")
    @classmethod
    def _strip(cls, v):
        return optional_text(v)

    @field_validator("state")
    @classmethod
    def _state(cls, v):
        v = optional_text(v)
        return v.upper() if v else v

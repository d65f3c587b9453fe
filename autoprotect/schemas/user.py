from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from autoprotect.core.enums import UserRole
from autoprotect.utils.validators import USERNAME_RE, normalize_email, optional_text


class LoginIn(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: UserRole
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    title: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


def _check_username(value: str) -> str:
    value = value.strip()
    if not USERNAME_RE.match(value):
        raise ValueError("Username must be 3-64 characters without spaces or colons")
    return value


class UserCreate(BaseModel):
    username: str
    password: str = Field(min_length=8)
    role: UserRole = UserRole.STAFF
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    title: Optional[str] = None

    @field_validator("username")
    @classmethod
    def _username(cls, v):
        return _check_username(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        return normalize_email(v)

    @field_validator("full_name", "phone", "title")
    @classmethod
    def _strip(cls, v):
        return optional_text(v)


class UserUpdate(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=8)
    role: Optional[UserRole] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    title: Optional[str] = None

    @field_validator("username")
    @classmethod
    def _username(cls, v):
        return _check_username(v) if v is not None else v

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        return normalize_email(v)

from sqlalchemy import Column, String
from autoprotect.models.base import BaseModel, enum_type
from autoprotect.core.enums import UserRole


class User(BaseModel):
    __tablename__ = "users"
    username = Column(String(64), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(enum_type(UserRole), nullable=False, default=UserRole.STAFF)
    full_name = Column(String(120))
    email = Column(String(255))
    phone = Column(String(40))
    title = Column(String(120))

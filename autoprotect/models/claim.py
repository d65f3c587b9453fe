from sqlalchemy import Column, String, ForeignKey, Integer, Text, Numeric
from sqlalchemy.orm import relationship
from autoprotect.models.base import BaseModel, enum_type
from autoprotect.core.enums import ClaimStatus


class Claim(BaseModel):
    __tablename__ = "claims"
    policy_id = Column(ForeignKey("policies.id", ondelete="CASCADE"), nullable=True, index=True)
    policy = relationship("Policy", back_populates="claims")
    status = Column(enum_type(ClaimStatus), nullable=False, default=ClaimStatus.NEW)
    next_estimate = Column(Numeric(12, 2))
    next_payment = Column(Numeric(12, 2))
    first_name = Column(String(120), nullable=False)
    last_name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(40), nullable=False)
    year = Column(Integer)
    make = Column(String(80))
    model = Column(String(80))
    trim = Column(String(80))
    vin = Column(String(32))
    serial = Column(String(64))
    odometer = Column(Integer)
    current_odometer = Column(Integer)
    claim_reason = Column(Text)
    agent_claim_number = Column(String(64))
    message = Column(Text, nullable=False)
    previous_notes = Column(Text)

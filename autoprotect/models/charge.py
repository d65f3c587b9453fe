from sqlalchemy import Column, String, ForeignKey, Integer, Text, DateTime
from sqlalchemy.orm import relationship
from autoprotect.models.base import BaseModel, enum_type, utcnow
from autoprotect.core.enums import ChargeStatus


class PolicyCharge(BaseModel):
    __tablename__ = "policy_charges"
    policy_id = Column(ForeignKey("policies.id", ondelete="CASCADE"), nullable=False, index=True)
    policy = relationship("Policy", back_populates="charges")
    customer_id = Column(ForeignKey("customer_accounts.id", ondelete="SET NULL"), nullable=True)
    description = Column(Text, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    status = Column(enum_type(ChargeStatus), nullable=False, default=ChargeStatus.PENDING)
    charged_at = Column(DateTime(timezone=True), default=utcnow)
    reference = Column(String(120))
    notes = Column(Text)

from sqlalchemy import Column, ForeignKey, Integer, DateTime, JSON
from sqlalchemy.orm import relationship
from autoprotect.models.base import BaseModel, enum_type
from autoprotect.core.enums import PlanType, QuoteStatus


class Quote(BaseModel):
    __tablename__ = "quotes"
    lead_id = Column(ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    lead = relationship("Lead", back_populates="quotes")
    plan = Column(enum_type(PlanType), nullable=False)
    deductible = Column(Integer, nullable=False)
    term_months = Column(Integer, nullable=False, default=36)
    price_monthly_cents = Column(Integer, nullable=False)
    price_total_cents = Column(Integer, nullable=False)
    fees_cents = Column(Integer, nullable=False, default=0)
    taxes_cents = Column(Integer, nullable=False, default=0)
    status = Column(enum_type(QuoteStatus), nullable=False, default=QuoteStatus.DRAFT)
    breakdown = Column(JSON)
    valid_until = Column(DateTime(timezone=True))
    created_by = Column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

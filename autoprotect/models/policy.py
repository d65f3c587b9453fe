from sqlalchemy import Column, String, ForeignKey, Integer, DateTime
from sqlalchemy.orm import relationship
from autoprotect.models.base import BaseModel, enum_type
from autoprotect.core.enums import PolicyStatus


class Policy(BaseModel):
    __tablename__ = "policies"
    lead_id = Column(ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, unique=True)
    lead = relationship("Lead", back_populates="policy")
    package = Column(String(40))
    status = Column(enum_type(PolicyStatus), nullable=False, default=PolicyStatus.ACTIVE)
    expiration_miles = Column(Integer)
    expiration_date = Column(DateTime(timezone=True))
    deductible = Column(Integer)
    total_premium_cents = Column(Integer)
    down_payment_cents = Column(Integer)
    monthly_payment_cents = Column(Integer)
    total_payments = Column(Integer)
    policy_start_date = Column(DateTime(timezone=True))

    notes = relationship("PolicyNote", back_populates="policy", cascade="all, delete-orphan", passive_deletes=True, order_by="PolicyNote.id")
    files = relationship("PolicyFile", back_populates="policy", cascade="all, delete-orphan", passive_deletes=True, order_by="PolicyFile.id")
    claims = relationship("Claim", back_populates="policy", cascade="all, delete-orphan", passive_deletes=True)
    customer_links = relationship("CustomerPolicy", back_populates="policy", cascade="all, delete-orphan", passive_deletes=True)
    charges = relationship(
        "PolicyCharge", back_populates="policy", cascade="all, delete-orphan", passive_deletes=True, order_by="PolicyCharge.id"
    )


class PolicyFile(BaseModel):
    __tablename__ = "policy_files"
    policy_id = Column(ForeignKey("policies.id", ondelete="CASCADE"), nullable=False)
    policy = relationship("Policy", back_populates="files")
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(512), nullable=False)
    content_type = Column(String(120))
    size = Column(Integer)

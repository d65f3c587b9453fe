from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, Text, JSON
from sqlalchemy.orm import relationship
from autoprotect.models.base import BaseModel, enum_type
from autoprotect.core.enums import LeadStatus


class Lead(BaseModel):
    __tablename__ = "leads"
    first_name = Column(String(120))
    last_name = Column(String(120))
    email = Column(String(255), index=True)
    phone = Column(String(40))
    zip = Column(String(20))
    state = Column(String(20))
    status = Column(enum_type(LeadStatus), nullable=False, default=LeadStatus.NEW, index=True)
    tags = Column(JSON, nullable=False, default=list)
    salesperson_email = Column(String(255))

    card_last_four = Column(String(4))
    card_expiry_month = Column(String(2))
    card_expiry_year = Column(String(4))

    shipping_address = Column(Text)
    shipping_city = Column(String(120))
    shipping_state = Column(String(120))
    shipping_zip = Column(String(32))
    billing_address = Column(Text)
    billing_city = Column(String(120))
    billing_state = Column(String(120))
    billing_zip = Column(String(32))
    shipping_same_as_billing = Column(Boolean, default=False)

    consent_tcpa = Column(Boolean, default=False)
    consent_timestamp = Column(DateTime(timezone=True))
    consent_ip = Column(String(64))
    consent_user_agent = Column(Text)

    source = Column(String(64), default="web")
    utm_source = Column(String(120))
    utm_medium = Column(String(120))
    utm_campaign = Column(String(120))
    raw_payload = Column(JSON)

    created_by = Column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    vehicle = relationship("Vehicle", back_populates="lead", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    quotes = relationship("Quote", back_populates="lead", cascade="all, delete-orphan", passive_deletes=True, order_by="Quote.id")
    notes = relationship("Note", back_populates="lead", cascade="all, delete-orphan", passive_deletes=True, order_by="Note.id")
    policy = relationship("Policy", back_populates="lead", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    contracts = relationship(
        "LeadContract", back_populates="lead", cascade="all, delete-orphan", passive_deletes=True, order_by="LeadContract.id"
    )

    @property
    def full_name(self) -> str:
        parts = [p.strip() for p in (self.first_name, self.last_name) if p and p.strip()]
        return " ".join(parts)

from sqlalchemy import Column, String, ForeignKey, Integer, Text, Boolean, DateTime
from sqlalchemy.orm import relationship
from autoprotect.models.base import BaseModel, enum_type
from autoprotect.core.enums import ContractStatus


class LeadContract(BaseModel):
    __tablename__ = "lead_contracts"
    lead_id = Column(ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    lead = relationship("Lead", back_populates="contracts")
    quote_id = Column(ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True)
    quote = relationship("Quote")
    uploaded_by = Column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    file_name = Column(String(255), nullable=False)
    file_type = Column(String(120))
    file_size = Column(Integer)
    file_data = Column(Text, nullable=False)
    status = Column(enum_type(ContractStatus), nullable=False, default=ContractStatus.DRAFT)

    signature_name = Column(String(160))
    signature_email = Column(String(255))
    signature_ip = Column(String(64))
    signature_user_agent = Column(Text)
    signature_consent = Column(Boolean, default=False)
    signed_at = Column(DateTime(timezone=True))

    # Card numbers and CVVs are validated at signing but never persisted
    payment_method = Column(String(120))
    payment_last_four = Column(String(4))
    payment_exp_month = Column(Integer)
    payment_exp_year = Column(Integer)
    payment_notes = Column(Text)

    billing_address_line1 = Column(String(255))
    billing_address_line2 = Column(String(255))
    billing_city = Column(String(120))
    billing_state = Column(String(120))
    billing_postal_code = Column(String(32))
    billing_country = Column(String(120))
    shipping_address_line1 = Column(String(255))
    shipping_address_line2 = Column(String(255))
    shipping_city = Column(String(120))
    shipping_state = Column(String(120))
    shipping_postal_code = Column(String(32))
    shipping_country = Column(String(120))

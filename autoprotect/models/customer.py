from sqlalchemy import Column, String, ForeignKey, Integer, Text, Boolean, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from autoprotect.models.base import BaseModel


class CustomerAccount(BaseModel):
    __tablename__ = "customer_accounts"
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(120))
    last_login_at = Column(DateTime(timezone=True))

    policy_links = relationship("CustomerPolicy", back_populates="customer", cascade="all, delete-orphan", passive_deletes=True)


class CustomerPolicy(BaseModel):
    __tablename__ = "customer_policies"
    __table_args__ = (UniqueConstraint("customer_id", "policy_id", name="customer_policies_unique_idx"),)

    customer_id = Column(ForeignKey("customer_accounts.id", ondelete="CASCADE"), nullable=False)
    policy_id = Column(ForeignKey("policies.id", ondelete="CASCADE"), nullable=False)
    customer = relationship("CustomerAccount", back_populates="policy_links")
    policy = relationship("Policy", back_populates="customer_links")


class CustomerPaymentProfile(BaseModel):
    __tablename__ = "customer_payment_profiles"
    __table_args__ = (UniqueConstraint("customer_id", "policy_id", name="customer_payment_profiles_unique_idx"),)

    customer_id = Column(ForeignKey("customer_accounts.id", ondelete="CASCADE"), nullable=False)
    policy_id = Column(ForeignKey("policies.id", ondelete="CASCADE"), nullable=False)
    payment_method = Column(String(120))
    account_name = Column(String(120))
    account_identifier = Column(String(120))
    card_brand = Column(String(40))
    card_last_four = Column(String(4))
    card_expiry_month = Column(Integer)
    card_expiry_year = Column(Integer)
    billing_zip = Column(String(16))
    autopay_enabled = Column(Boolean, default=False)
    notes = Column(Text)

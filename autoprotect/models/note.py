from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.orm import relationship
from autoprotect.models.base import BaseModel


class Note(BaseModel):
    __tablename__ = "notes"
    lead_id = Column(ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    lead = relationship("Lead", back_populates="notes")
    content = Column(Text, nullable=False)


class PolicyNote(BaseModel):
    __tablename__ = "policy_notes"
    policy_id = Column(ForeignKey("policies.id", ondelete="CASCADE"), nullable=False, index=True)
    policy = relationship("Policy", back_populates="notes")
    content = Column(Text, nullable=False)

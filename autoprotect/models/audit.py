from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship, backref
from autoprotect.models.base import BaseModel

class Audit(BaseModel):
    __tablename__ = "audits"

    user_id = Column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", backref=backref("audit_logs", passive_deletes=True))

    action = Column(String(255), nullable=False)
    payload_hash = Column(String(128), nullable=False)

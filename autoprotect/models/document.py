from sqlalchemy import Column, String, ForeignKey, Integer, Text, DateTime
from sqlalchemy.orm import relationship
from autoprotect.models.base import BaseModel, enum_type
from autoprotect.core.enums import DocumentRequestType, DocumentRequestStatus


class CustomerDocumentRequest(BaseModel):
    __tablename__ = "customer_document_requests"
    policy_id = Column(ForeignKey("policies.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(ForeignKey("customer_accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    requested_by = Column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    type = Column(enum_type(DocumentRequestType), nullable=False, default=DocumentRequestType.OTHER)
    title = Column(String(160), nullable=False)
    instructions = Column(Text)
    status = Column(enum_type(DocumentRequestStatus), nullable=False, default=DocumentRequestStatus.PENDING)
    due_date = Column(DateTime(timezone=True))

    policy = relationship("Policy")
    customer = relationship("CustomerAccount")
    uploads = relationship(
        "CustomerDocumentUpload",
        back_populates="request",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CustomerDocumentUpload.id",
    )


class CustomerDocumentUpload(BaseModel):
    __tablename__ = "customer_document_uploads"
    request_id = Column(ForeignKey("customer_document_requests.id", ondelete="CASCADE"), nullable=False)
    customer_id = Column(ForeignKey("customer_accounts.id", ondelete="CASCADE"), nullable=False)
    policy_id = Column(ForeignKey("policies.id", ondelete="CASCADE"), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(120))
    file_size = Column(Integer)
    file_data = Column(Text, nullable=False)

    request = relationship("CustomerDocumentRequest", back_populates="uploads")

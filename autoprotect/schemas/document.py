from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from autoprotect.core.enums import DocumentRequestStatus, DocumentRequestType


class DocumentRequestCreate(BaseModel):
    customer_id: int
    type: DocumentRequestType = DocumentRequestType.OTHER
    title: str = Field(min_length=1, max_length=160)
    instructions: Optional[str] = None
    due_date: Optional[datetime] = None
    send_email: bool = True


class DocumentRequestStatusUpdate(BaseModel):
    status: DocumentRequestStatus


class DocumentUploadIn(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    file_data: str = Field(min_length=1)
    file_type: Optional[str] = None


class DocumentUploadOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    request_id: int
    customer_id: int
    policy_id: int
    file_name: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    created_at: datetime


class DocumentUploadContent(DocumentUploadOut):
    data_url: str


class DocumentRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    policy_id: int
    customer_id: int
    requested_by: Optional[int] = None
    type: DocumentRequestType
    title: str
    instructions: Optional[str] = None
    status: DocumentRequestStatus
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class DocumentRequestWithUploads(DocumentRequestOut):
    uploads: List[DocumentUploadOut] = []

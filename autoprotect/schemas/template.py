from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class EmailTemplateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    subject: str = Field(min_length=1)
    body_html: str = Field(min_length=1)


class EmailTemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    subject: str
    body_html: str
    created_at: datetime
    updated_at: Optional[datetime] = None

from sqlalchemy import Column, String, Text
from autoprotect.models.base import BaseModel


class EmailTemplate(BaseModel):
    __tablename__ = "email_templates"
    name = Column(String(120), nullable=False)
    subject = Column(Text, nullable=False)
    body_html = Column(Text, nullable=False)

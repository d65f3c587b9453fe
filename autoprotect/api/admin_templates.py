from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from autoprotect.core.security import get_current_user
from autoprotect.db.session import get_db
from autoprotect.models.email_template import EmailTemplate
from autoprotect.schemas.common import DataResponse
from autoprotect.schemas.template import EmailTemplateCreate, EmailTemplateOut
from autoprotect.utils.html import sanitize_html

router = APIRouter(prefix="/api/admin/email-templates", tags=["admin-templates"])


@router.get("", response_model=DataResponse[List[EmailTemplateOut]])
async def list_templates(db: AsyncSession = Depends(get_db), current_user=Depends(get_current_user)):
    res = await db.execute(select(EmailTemplate).order_by(EmailTemplate.name))
    templates = [
        EmailTemplateOut.model_validate(t).model_copy(update={"body_html": sanitize_html(t.body_html)})
        for t in res.scalars().all()
    ]
    return {"data": templates, "message": "Templates retrieved successfully"}


@router.post("", status_code=201, response_model=DataResponse[EmailTemplateOut])
async def create_template(
    payload: EmailTemplateCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    template = EmailTemplate(
        name=payload.name.strip(),
        subject=payload.subject.strip(),
        body_html=sanitize_html(payload.body_html),
    )
    db.add(template)
    await db.commit()
    return {"data": EmailTemplateOut.model_validate(template), "message": "Template saved successfully"}

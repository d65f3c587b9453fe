from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from autoprotect.schemas.common import DataResponse
from autoprotect.schemas.user import LoginIn, TokenOut, UserOut
from autoprotect.models.user import User
from autoprotect.db.session import get_db
from autoprotect.core.security import create_access_token, get_current_user, verify_password
from autoprotect.core.audit_log import log_login

router = APIRouter(prefix="/api/admin", tags=["auth"])


@router.post("/login", response_model=DataResponse[TokenOut])
async def login(payload: LoginIn, db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(User).where(User.username == payload.username.strip()))
    user = res.scalars().first()
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    await log_login(db, int(user.id), user.username)

    token = create_access_token(str(user.id), user.role)
    return {
        "data": TokenOut(access_token=token, user=UserOut.model_validate(user)),
        "message": "Login successful",
    }


@router.get("/me", response_model=DataResponse[UserOut])
async def me(current_user: User = Depends(get_current_user)):
    return {"data": UserOut.model_validate(current_user), "message": "Authenticated"}

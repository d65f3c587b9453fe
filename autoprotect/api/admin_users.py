import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from autoprotect.core.audit_decorator import audit_log
from autoprotect.core.auth_utils import check_not_found
from autoprotect.core.enums import AuditAction, UserRole
from autoprotect.core.rate_limit import check_rate_limit
from autoprotect.core.security import hash_password, require_admin
from autoprotect.db.session import get_db
from autoprotect.models.user import User
from autoprotect.schemas.common import DataResponse, MessageResponse
from autoprotect.schemas.user import UserCreate, UserOut, UserUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin/users", tags=["admin-users"])


async def _username_taken(db: AsyncSession, username: str, exclude_id: int = None) -> bool:
    q = select(User.id).where(User.username == username)
    if exclude_id is not None:
        q = q.where(User.id != exclude_id)
    res = await db.execute(q)
    return res.first() is not None


async def _admin_count(db: AsyncSession) -> int:
    res = await db.execute(select(func.count(User.id)).where(User.role == UserRole.ADMIN))
    return res.scalar_one()


@router.get("", response_model=DataResponse[List[UserOut]])
async def list_users(db: AsyncSession = Depends(get_db), current_user=Depends(require_admin)):
    res = await db.execute(select(User).order_by(User.username))
    users = res.scalars().all()
    return {"data": [UserOut.model_validate(u) for u in users], "message": "Users retrieved successfully"}


@router.post("", status_code=201, response_model=DataResponse[UserOut])
@audit_log(AuditAction.CREATE_USER)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    await check_rate_limit(int(current_user.id))

    if await _username_taken(db, payload.username):
        raise HTTPException(status_code=409, detail="Username already exists")

    data = payload.model_dump(exclude={"password"})
    user = User(**data, password_hash=hash_password(payload.password))
    db.add(user)
    await db.commit()
    logger.info(f"User {user.username} created by {current_user.username}")
    return {"data": UserOut.model_validate(user), "message": "User created successfully"}


@router.patch("/{user_id}", response_model=DataResponse[UserOut])
@audit_log(AuditAction.UPDATE_USER)
async def update_user(
    user_id: int,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    await check_rate_limit(int(current_user.id))

    user = await db.get(User, user_id)
    check_not_found(user, "User", user_id)

    changes = payload.model_dump(exclude_unset=True)
    if "username" in changes and await _username_taken(db, changes["username"], exclude_id=user_id):
        raise HTTPException(status_code=409, detail="Username already exists")
    if (
        changes.get("role") == UserRole.STAFF
        and user.role == UserRole.ADMIN
        and await _admin_count(db) <= 1
    ):
        raise HTTPException(status_code=400, detail="At least one admin is required")

    password = changes.pop("password", None)
    if password:
        user.password_hash = hash_password(password)
    for field, value in changes.items():
        setattr(user, field, value)

    db.add(user)
    await db.commit()
    return {"data": UserOut.model_validate(user), "message": "User updated successfully"}


@router.delete("/{user_id}", response_model=MessageResponse)
@audit_log(AuditAction.DELETE_USER)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    await check_rate_limit(int(current_user.id))

    if user_id == int(current_user.id):
        raise HTTPException(status_code=400, detail="You cannot delete your own account")

    user = await db.get(User, user_id)
    check_not_found(user, "User", user_id)
    if user.role == UserRole.ADMIN and await _admin_count(db) <= 1:
        raise HTTPException(status_code=400, detail="Cannot delete the last admin")

    await db.delete(user)
    await db.commit()
    return {"message": "User deleted successfully"}

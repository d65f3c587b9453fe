from datetime import datetime, timezone, timedelta
from typing import Optional
from jose import jwt, JWTError
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from passlib.context import CryptContext
from sqlalchemy.future import select
from autoprotect.db.session import get_db
from autoprotect.models.user import User
from autoprotect.models.customer import CustomerAccount
from autoprotect.core.config import settings
from autoprotect.core.enums import UserRole

JWT_ALGORITHM = "HS256"
STAFF_SCOPE = "staff"
CUSTOMER_SCOPE = "customer"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/admin/login", auto_error=False)
customer_oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/customer/login", scheme_name="CustomerBearer", auto_error=False
)


pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False

def create_access_token(
    subject: str,
    role: str,
    expires_minutes: Optional[int] = None,
    scope: str = STAFF_SCOPE,
) -> str:
    expires = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    expire_dt = datetime.now(timezone.utc) + timedelta(minutes=expires)
    to_encode = {"sub": str(subject), "role": str(role), "scope": scope, "exp": expire_dt}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=JWT_ALGORITHM)

def create_customer_token(customer_id: int, email: str) -> str:
    expire_dt = datetime.now(timezone.utc) + timedelta(minutes=settings.CUSTOMER_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": str(customer_id), "email": email, "scope": CUSTOMER_SCOPE, "exp": expire_dt}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=JWT_ALGORITHM)


def _decode_subject(token: Optional[str], scope: str) -> int:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    subject = payload.get("sub")
    if subject is None or payload.get("scope") != scope:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    try:
        return int(subject)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


async def get_current_user(token: Optional[str] = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db)) -> User:
    user_id = _decode_subject(token, STAFF_SCOPE)
    res = await db.execute(select(User).where(User.id == user_id))
    user = res.scalars().first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user

def require_admin(user: User = Depends(get_current_user)):
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


async def get_current_customer(
    token: Optional[str] = Depends(customer_oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CustomerAccount:
    customer_id = _decode_subject(token, CUSTOMER_SCOPE)
    res = await db.execute(select(CustomerAccount).where(CustomerAccount.id == customer_id))
    customer = res.scalars().first()
    if not customer:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Customer session expired")
    return customer

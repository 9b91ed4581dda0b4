# taskpulse/core/auth.py
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from taskpulse.database import get_db
from taskpulse.models.user import User
from taskpulse.core.security import decode_token, ACCESS_TOKEN_TYPE

reusable_oauth2 = HTTPBearer()
optional_oauth2 = HTTPBearer(auto_error=False)

credentials_exception = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


async def user_from_token(db: AsyncSession, token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> User:
    try:
        payload = decode_token(token)
        sub = payload.get("sub")
        if sub is None or payload.get("type") != expected_type:
            raise credentials_exception
        user_id = int(sub)
    except (JWTError, ValueError):
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise credentials_exception
    return user


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    token: HTTPAuthorizationCredentials = Depends(reusable_oauth2)
):
    return await user_from_token(db, token.credentials)


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    token: Optional[HTTPAuthorizationCredentials] = Depends(optional_oauth2)
) -> Optional[User]:
    """None only when no Authorization header was sent. A header that is sent must hold a valid bearer token."""
    if "authorization" not in request.headers:
        return None
    if token is None:
        raise credentials_exception
    return await user_from_token(db, token.credentials)

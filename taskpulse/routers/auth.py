# taskpulse/routers/auth.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskpulse.models.user import User
from taskpulse.schemas.user import (
    UserCreate, UserLogin, UserResponse, RegisterResponse, Token, RefreshRequest, AccessToken,
)
from taskpulse.database import get_db
from taskpulse.utils.password import hash_password, verify_password
from taskpulse.core.security import create_access_token, create_refresh_token, REFRESH_TOKEN_TYPE
from taskpulse.core.auth import get_current_user, user_from_token
from taskpulse.services.sample_data import build_sample_tasks
from taskpulse.services.task_store import SqlTaskStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserCreate, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == user_in.email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="User with this email already exists")

    try:
        hashed_pw = hash_password(user_in.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    user = User(
        email=user_in.email,
        name=user_in.name,
        hashed_password=hashed_pw
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    user_out = UserResponse.model_validate(user)

    # The account stands even if the starter tasks cannot be written
    sample_tasks_created = True
    try:
        await SqlTaskStore(db, user_out.id).add_many(build_sample_tasks())
    except SQLAlchemyError:
        await db.rollback()
        sample_tasks_created = False
        logger.exception("Failed to create sample tasks for user %s", user_out.id)

    return RegisterResponse(
        message="User created successfully",
        user=user_out,
        sample_tasks_created=sample_tasks_created,
    )


@router.post("/login", response_model=Token)
async def login(user_in: UserLogin, db: AsyncSession = Depends(get_db)):
    # Fetch user
    result = await db.execute(select(User).where(User.email == user_in.email.lower()))
    user = result.scalar_one_or_none()

    # Verify credentials
    if not user or not verify_password(user_in.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token({"sub": str(user.id)})
    refresh_token = create_refresh_token({"sub": str(user.id)})

    return Token(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        user=UserResponse.model_validate(user)
    )


@router.post("/refresh", response_model=AccessToken)
async def refresh(request: RefreshRequest, db: AsyncSession = Depends(get_db)):
    user = await user_from_token(db, request.refresh_token, expected_type=REFRESH_TOKEN_TYPE)
    return AccessToken(
        access_token=create_access_token({"sub": str(user.id)}),
        token_type="bearer",
    )


@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user

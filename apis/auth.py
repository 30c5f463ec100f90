from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select
from database import get_session
from models.auth import User, Token, TokenUser, UserRole
from .schemas.auth import LoginRequest, LoginResponse, SignupRequest, UserResponse
from helpers.auth import get_auth_token, get_token_user
from settings import settings, logger

import hashlib
from datetime import datetime, timedelta, timezone
from models.helper import id_generator

router = APIRouter(prefix="/auth", tags=["authentication"])


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode()).hexdigest()


def _issue_token(user: User, db_session: Session) -> LoginResponse:
    """Create a bearer token for `user` and link it to them."""

    access_token = id_generator('tkn', 32)()
    refresh_token = id_generator('ref', 32)()
    expires_at = datetime.now(timezone.utc) + timedelta(hours=settings.TOKEN_TTL_HOURS)

    new_token = Token(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=expires_at
    )

    db_session.add(new_token)
    db_session.commit()
    db_session.refresh(new_token)

    token_user = TokenUser(token_id=new_token.id, user_id=user.id)
    db_session.add(token_user)
    db_session.commit()

    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_at=expires_at,
        user=UserResponse.model_validate(user)
    )


@router.get("/has-users")
async def has_users(
    db_session: Session = Depends(get_session)
) -> dict:
    """Check if any users exist in the system (for onboarding)."""

    user = db_session.exec(select(User)).first()
    return {"has_users": user is not None}


@router.post("/signup")
async def signup(
    signup_data: SignupRequest,
    db_session: Session = Depends(get_session)
) -> LoginResponse:
    """Initial admin signup (only works when no users exist in system)."""

    if db_session.exec(select(User)).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Users already exist. Signup is disabled."
        )

    new_user = User(
        username=signup_data.username,
        email=signup_data.email,
        hashed_password=hash_password(signup_data.password),
        role=UserRole.ADMIN,
        is_active=True
    )

    db_session.add(new_user)
    db_session.commit()
    db_session.refresh(new_user)

    logger.info("Initial admin created", extra={"user_id": new_user.id})
    return _issue_token(new_user, db_session)


@router.post("/token")
async def login(
    login_data: LoginRequest,
    db_session: Session = Depends(get_session)
) -> LoginResponse:
    """Login for back office users."""

    user_statement = select(User).where(
        User.username == login_data.username,
        User.is_active == True  # Only allow login for active users
    )
    user = db_session.exec(user_statement).first()

    # Don't reveal whether username or password was wrong
    if not user or user.hashed_password != hash_password(login_data.password):
        logger.warning("Failed login attempt", extra={"username": login_data.username})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    return _issue_token(user, db_session)


@router.get("/me")
async def get_current_user(
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> UserResponse:
    """Return the user owning the bearer token."""

    user = await get_token_user(token=token, db_session=db_session)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not linked to an active user"
        )
    return UserResponse.model_validate(user)

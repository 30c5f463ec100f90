from fastapi import Depends, Header, HTTPException, status
from sqlmodel import Session, select
from datetime import datetime, timezone
from typing import Optional
from database import get_session
from models.auth import Token, TokenUser, User, UserRole
from settings import logger


def _as_utc(value: datetime) -> datetime:
    # SQLite hands datetimes back without tzinfo
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def get_auth_token(
    authorization: Optional[str] = Header(default=None),
    db_session: Session = Depends(get_session)
) -> Token:
    """Resolve the `Authorization: Bearer <token>` header to a live token."""

    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    access_token = authorization[7:].strip()
    token = db_session.exec(select(Token).where(Token.access_token == access_token)).first()

    if not token or token.is_revoked or _as_utc(token.expires_at) <= datetime.now(timezone.utc):
        logger.warning("Rejected bearer token", extra={"token_found": token is not None})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return token


async def get_token_user(token: Token, db_session: Session) -> Optional[User]:
    """Return the active user a token was issued for, if any."""
    statement = (
        select(User)
        .join(TokenUser, TokenUser.user_id == User.id)
        .where(TokenUser.token_id == token.id, User.is_active == True)
    )
    return db_session.exec(statement).first()


async def require_admin(token: Token, db_session: Session) -> User:
    """Allow the request only when the token belongs to an ADMIN user."""

    user = await get_token_user(token=token, db_session=db_session)
    if not user or user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user

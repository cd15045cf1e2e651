from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.core.db import get_db
from app.core.security import decode_access_token
from app.models.auth import User
from app.models.enums import UserStatus

bearer = HTTPBearer(description="Access token issued by the identity provider")

DbSession = Annotated[AsyncSession, Depends(get_db)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer)],
    db: DbSession,
) -> User:
    """
    Resolve the document owner behind a provider-issued bearer token.

    The provider owns sign-in; this API only verifies the token and maps its
    `sub` claim onto a local user row scoped to one company.
    """
    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise _unauthorized("Invalid token or token expired")

    subject = claims.get("sub")
    if not subject:
        raise _unauthorized("Token missing user ID")

    user = (await db.execute(select(User).where(User.id == str(subject)))).scalar_one_or_none()
    if user is None:
        raise _unauthorized("User not found")

    if user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is not active")

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]

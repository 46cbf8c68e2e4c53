from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from laneboard.db.database import get_async_session
from laneboard.services.security_service import SecurityService
from laneboard.models.user import User

# OAuth2 configuration
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


# Dependency to get current user
async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_async_session)
) -> User:
    """
    Get the current authenticated user from the JWT token

    Returns:
        User: The authenticated user

    Raises:
        HTTPException: If the token is invalid, the user is missing or inactive
    """
    user = await SecurityService.get_current_user(db, token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


# WebSocket variant: an unauthenticated connection is not an error here,
# the stream handshake rejects it
async def get_user_from_token(
    token: Optional[str],
    db: AsyncSession
) -> Optional[User]:
    """Resolve the access token passed in the stream URL, None when missing or invalid"""
    if not token:
        return None
    return await SecurityService.get_current_user(db, token)

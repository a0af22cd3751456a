"""
API Dependencies Module

This module provides FastAPI dependency functions for authentication.
It implements a dual authentication strategy supporting both bearer tokens (for API clients)
and HTTP-only cookies (for browser clients).
"""
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from pydantic import ValidationError
from sqlmodel import Session, select

from worktrack.core.config import settings
from worktrack.db.session import get_db
from worktrack.models.profile import Profile
from worktrack.schemas.auth import TokenData

# auto_error=False allows us to check cookies as a fallback
reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    auto_error=False
)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(reusable_oauth2)
) -> Profile:
    """
    Dependency that retrieves and validates the current authenticated profile.

    The bearer token in the Authorization header is checked first, then the
    access_token cookie.

    Raises:
        HTTPException 401: If no token is provided
        HTTPException 403: If the token is invalid or expired
        HTTPException 404: If the profile referenced in the token doesn't exist
    """
    if not token:
        token = request.cookies.get("access_token")
        # Cookie format is "Bearer <token>"
        if token and token.startswith("Bearer "):
            token = token[len("Bearer "):]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        token_data = TokenData(email=payload.get("sub"))
    except (JWTError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not validate credentials",
        )

    profile = db.exec(select(Profile).where(Profile.email == token_data.email)).first()
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


def get_current_active_user(
    current_user: Profile = Depends(get_current_user),
) -> Profile:
    """
    Dependency that requires any authenticated profile.

    Every team member has the same permissions, so this is the only check.
    """
    return current_user

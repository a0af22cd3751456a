"""
Authentication Endpoints Module

This module provides authentication endpoints for profile registration, login, and logout.
The system supports both JWT bearer token authentication and HTTP-only cookie-based
authentication for browser clients.
"""
from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, status, Response
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session

from worktrack.core.config import settings
from worktrack.core.security import create_access_token
from worktrack.db.session import get_db
from worktrack.models.profile import ProfileRead
from worktrack.schemas.auth import Token, ProfileRegister
from worktrack.services import profiles

router = APIRouter()


@router.post("/register", response_model=ProfileRead)
def register(profile_in: ProfileRegister, db: Session = Depends(get_db)):
    """
    Register a new team member.

    The password must pass the strength rules and is stored as a bcrypt hash.

    Raises:
        409: If a profile with this email already exists
        422: If the password is too weak or the name is empty
    """
    return profiles.create_profile(
        db, email=profile_in.email, password=profile_in.password, full_name=profile_in.full_name
    )


@router.post("/login", response_model=Token)
def login(response: Response, db: Session = Depends(get_db), form_data: OAuth2PasswordRequestForm = Depends()):
    """
    Authenticate a profile and issue an access token.

    The token is returned in the body and also set as an HTTP-only cookie.
    OAuth2PasswordRequestForm uses the 'username' field, which holds the email.

    Raises:
        HTTPException 401: If credentials are invalid
    """
    profile = profiles.authenticate(db, form_data.username, form_data.password)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        subject=profile.email, expires_delta=access_token_expires
    )

    # httponly keeps the cookie away from scripts; samesite="lax" blocks cross-site posts
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax"
    )

    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/logout")
def logout(response: Response):
    """
    Clear the authentication cookie. API clients can simply discard their token.
    """
    response.delete_cookie("access_token")
    return {"status": "logged out"}

"""
Profile Model Module

This module defines the Profile model: the team members who create requests,
get assigned to them and log time. Profiles double as login accounts.
"""
from typing import Optional
from sqlmodel import SQLModel, Field
import uuid

from worktrack.models.base import utcnow_iso


class Profile(SQLModel, table=True):
    """
    Profile model representing a team member.

    Other records copy `full_name` at write time (time-cost `user_name`,
    comment `author_name`, request `creator_name`). Renaming a profile does not
    touch those copies.

    Attributes:
        id: Unique identifier (UUID) automatically generated for each profile
        email: Login email address (required, unique, indexed)
        full_name: Display name shown in reports and comments
        password: Hashed password (bcrypt)
        created_at: ISO timestamp when the profile was created
        updated_at: ISO timestamp of the last profile change
    """
    __tablename__ = "profiles"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)

    email: str = Field(unique=True, index=True, nullable=False)
    full_name: str = Field(default="", nullable=False)
    password: Optional[str] = None

    created_at: Optional[str] = Field(default_factory=utcnow_iso)
    updated_at: Optional[str] = Field(default_factory=utcnow_iso)


class ProfileRead(SQLModel):
    """Public profile fields (password hash excluded)."""
    id: str
    email: str
    full_name: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ProfileUpdate(SQLModel):
    full_name: str

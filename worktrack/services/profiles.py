"""
Profile service: registration, lookup and renaming of team members.
"""
import logging
from typing import List, Optional

from sqlmodel import Session, select

from worktrack.core.exceptions import ConflictError, NotFoundError, ValidationError
from worktrack.core.security import get_password_hash, verify_password
from worktrack.core.validators import check_password_strength, is_valid_email
from worktrack.db.session import store_errors, transaction
from worktrack.models.base import utcnow_iso
from worktrack.models.profile import Profile

logger = logging.getLogger(__name__)


def get_profile(db: Session, profile_id: str) -> Profile:
    with store_errors("load profile"):
        profile = db.get(Profile, profile_id)
    if not profile:
        raise NotFoundError("Profile", profile_id)
    return profile


def get_profile_by_email(db: Session, email: str) -> Optional[Profile]:
    with store_errors("load profile"):
        return db.exec(select(Profile).where(Profile.email == email.lower())).first()


def list_profiles(db: Session) -> List[Profile]:
    """Profiles ordered by full name, as offered in the assignee selector."""
    with store_errors("list profiles"):
        return list(db.exec(select(Profile).order_by(Profile.full_name)).all())


def create_profile(db: Session, email: str, password: str, full_name: str) -> Profile:
    """
    Register a new profile.

    Raises:
        ValidationError: Bad email, weak password or empty name
        ConflictError: The email is already registered
    """
    email = (email or "").strip().lower()
    if not is_valid_email(email):
        raise ValidationError("Please enter a valid email address", details={"email": email})
    strong, message = check_password_strength(password or "")
    if not strong:
        raise ValidationError(message, details={"password": message})
    if not full_name or not full_name.strip():
        raise ValidationError("Full name is required", details={"full_name": "required"})
    if get_profile_by_email(db, email):
        raise ConflictError("Profile", "email", email)

    profile = Profile(
        email=email,
        full_name=full_name.strip(),
        password=get_password_hash(password),
    )
    with transaction(db, "create profile"):
        db.add(profile)
    db.refresh(profile)
    logger.info("Registered profile %s", profile.email, extra={"user_id": profile.id})
    return profile


def authenticate(db: Session, email: str, password: str) -> Optional[Profile]:
    profile = get_profile_by_email(db, email or "")
    if not profile or not verify_password(password, profile.password):
        return None
    return profile


def update_profile(db: Session, profile_id: str, full_name: str) -> Profile:
    """
    Rename a profile.

    Names already copied onto time entries, comments and requests keep their
    old value.
    """
    if not full_name or not full_name.strip():
        raise ValidationError("Full name is required", details={"full_name": "required"})
    profile = get_profile(db, profile_id)
    with transaction(db, "update profile"):
        profile.full_name = full_name.strip()
        profile.updated_at = utcnow_iso()
        db.add(profile)
    db.refresh(profile)
    return profile

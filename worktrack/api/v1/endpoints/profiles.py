from typing import List
from fastapi import APIRouter, Depends
from sqlmodel import Session

from worktrack.db.session import get_db
from worktrack.models.profile import Profile, ProfileRead, ProfileUpdate
from worktrack.services import profiles
from worktrack.api import deps

router = APIRouter()


@router.get("", response_model=List[ProfileRead])
def list_profiles(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    All team members ordered by name, for the assignee and report selectors.
    """
    return profiles.list_profiles(db)


@router.get("/me", response_model=ProfileRead)
def read_profile_me(current_user: Profile = Depends(deps.get_current_active_user)):
    return current_user


@router.patch("/me", response_model=ProfileRead)
def update_profile_me(
    profile_in: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Change the current profile's display name.

    Names already copied onto time entries, comments and requests are kept.
    """
    return profiles.update_profile(db, current_user.id, profile_in.full_name)


@router.get("/{profile_id}", response_model=ProfileRead)
def read_profile(
    profile_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    return profiles.get_profile(db, profile_id)

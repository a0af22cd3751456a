from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from worktrack.db.session import get_db
from worktrack.models.activity import ActivityPage
from worktrack.models.profile import Profile
from worktrack.services import activity
from worktrack.api import deps

router = APIRouter()


@router.get("", response_model=ActivityPage)
def list_activity(
    request_id: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Newest-first activity, 100 rows per page. Pass request_id for the timeline
    of a single request.
    """
    return activity.list_activity(db, request_id=request_id, page=page)

from fastapi import APIRouter, Depends
from sqlmodel import Session

from worktrack.db.session import get_db
from worktrack.models.profile import Profile
from worktrack.services import ledger
from worktrack.api import deps

router = APIRouter()


@router.delete("/{entry_id}")
def delete_time_entry(
    entry_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Delete a time entry. Entries are never edited; a wrong entry is deleted
    and logged again.
    """
    ledger.delete_entry(db, entry_id, actor=current_user)
    return {"ok": True}

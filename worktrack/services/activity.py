"""
Activity log writer and reader.

`record_activity` only adds a row to the caller's session; it is committed (or
rolled back) together with the mutation it describes.
"""
import datetime as dt
from enum import Enum
from typing import Any, Optional

from sqlmodel import Session, select

from worktrack.db.session import store_errors
from worktrack.models.activity import ActivityLog, ActivityPage, EntityType
from worktrack.models.profile import Profile

ITEMS_PER_PAGE = 100


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    return value


def field_changes(before: dict, after: dict, fields=("status", "due_date")) -> dict:
    """
    Before/after pairs for the tracked fields whose value actually changed.
    """
    changes = {}
    for field in fields:
        if field not in after:
            continue
        old, new = _plain(before.get(field)), _plain(after.get(field))
        if old != new:
            changes[field] = {"from": old, "to": new}
    return changes


def record_activity(
    db: Session,
    actor: Optional[Profile],
    action: str,
    entity_type: EntityType,
    entity_id: str,
    details: str = "",
    request_id: Optional[str] = None,
    changes: Optional[dict] = None,
) -> ActivityLog:
    entry = ActivityLog(
        user_id=actor.id if actor else None,
        user_name=actor.full_name if actor else "",
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        request_id=request_id,
        details=details,
        changes=changes or {},
    )
    db.add(entry)
    return entry


def list_activity(
    db: Session,
    request_id: Optional[str] = None,
    page: int = 1,
    per_page: int = ITEMS_PER_PAGE,
) -> ActivityPage:
    """
    Newest-first page of the activity log, optionally for one request only.
    """
    page = max(page, 1)
    statement = select(ActivityLog)
    if request_id:
        statement = statement.where(ActivityLog.request_id == request_id)
    # Fetch one extra row to learn whether another page exists
    statement = (
        statement.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page + 1)
    )
    with store_errors("list activity"):
        rows = list(db.exec(statement).all())

    has_more = len(rows) > per_page
    return ActivityPage(items=rows[:per_page], page=page, per_page=per_page, has_more=has_more)

"""
Activity Log Model Module

Write-only audit trail of mutations, read back by the activity views.
"""
from enum import Enum
from typing import Optional, List
from sqlmodel import SQLModel, Field, Column, JSON, AutoString

from worktrack.models.base import utcnow_iso


class EntityType(str, Enum):
    REQUEST = "request"
    CLIENT = "client"
    COST_TRACKER = "cost_tracker"
    COMMENT = "comment"
    LINK = "link"


class ActivityLog(SQLModel, table=True):
    """
    Activity log table model.

    Attributes:
        id: Auto-incrementing primary key
        user_id: Profile that performed the action
        user_name: Copy of the actor's full_name at the time
        action: Action kind, e.g. "created", "updated", "cloned"
        entity_type: Kind of record acted upon
        entity_id: Id of the record acted upon
        request_id: Owning request, for the per-request timeline
        details: Human-readable summary
        changes: {"field": {"from": ..., "to": ...}} for status and due date changes
        created_at: ISO timestamp of the action
    """
    __tablename__ = "activity_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[str] = Field(default=None, index=True)
    user_name: Optional[str] = ""
    action: str = Field(nullable=False)
    entity_type: EntityType = Field(sa_type=AutoString, nullable=False)
    entity_id: str = Field(nullable=False)
    request_id: Optional[str] = Field(default=None, index=True)
    details: Optional[str] = ""
    changes: dict = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: Optional[str] = Field(default_factory=utcnow_iso, index=True)


class ActivityPage(SQLModel):
    items: List[ActivityLog] = []
    page: int
    per_page: int
    has_more: bool

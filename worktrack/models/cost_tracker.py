"""
Time-Cost Entry Model Module

One row per work session: who spent how many hours on which request on which
day. Entries are created and deleted, never edited.
"""
import datetime as dt
from decimal import Decimal
from typing import Any, Optional
from sqlmodel import SQLModel, Field
import uuid

from worktrack.models.base import utcnow_iso


class TimeCostEntry(SQLModel, table=True):
    """
    Time-cost ledger table model.

    `request_id` is deliberately not a foreign key: deleting a request leaves
    its entries in place and reports skip them.

    Attributes:
        id: Unique identifier (UUID)
        request_id: Request the time was spent on
        user_id: Profile that did the work
        user_name: Copy of the profile's full_name when the entry was added
        date: Calendar day of the work
        time_spent: Decimal hours (1.5 = 1 hour 30 minutes)
        notes: Optional description of the work
        seq: Creation order, from the `cost_tracker` sequence. Breaks ties
            between entries that share a `created_at` timestamp.
    """
    __tablename__ = "cost_trackers"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    request_id: str = Field(index=True, nullable=False)
    user_id: str = Field(index=True, nullable=False)
    user_name: str = ""
    date: dt.date = Field(index=True, nullable=False)
    time_spent: Decimal = Field(max_digits=8, decimal_places=2, nullable=False)
    notes: Optional[str] = ""
    seq: Optional[int] = Field(default=None, index=True)

    created_at: Optional[str] = Field(default_factory=utcnow_iso)
    updated_at: Optional[str] = Field(default_factory=utcnow_iso)


class TimeCostEntryCreate(SQLModel):
    """
    Schema for logging time.

    `time_spent` is left loosely typed so the ledger can reject bad input with
    its own message instead of a generic parse error. `user_id` defaults to the
    current profile.
    """
    date: dt.date
    time_spent: Any
    notes: Optional[str] = ""
    user_id: Optional[str] = None


class TimeCostEntryRead(SQLModel):
    id: str
    request_id: str
    user_id: str
    user_name: str
    date: dt.date
    time_spent: Decimal
    notes: Optional[str] = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class RequestTimeSummary(SQLModel):
    """Entries of one request plus their total."""
    request_id: str
    total_hours: Decimal
    entries: list[TimeCostEntryRead] = []

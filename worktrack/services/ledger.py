"""
Time-Cost Ledger

Append and delete time entries, and total them per request. Hours are Decimal
end to end so sums never pick up float rounding.
"""
import datetime as dt
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Union

from sqlalchemy import func
from sqlmodel import Session, select

from worktrack.core.exceptions import NotFoundError, ValidationError
from worktrack.db.session import store_errors, transaction
from worktrack.models.activity import EntityType
from worktrack.models.cost_tracker import TimeCostEntry
from worktrack.models.profile import Profile
from worktrack.services.activity import record_activity
from worktrack.services.allocator import next_sequence_value

logger = logging.getLogger(__name__)

ENTRY_SEQUENCE = "cost_tracker"

HOURS_MESSAGE = (
    "Please enter a valid time value greater than 0 with at most two decimal places "
    "(e.g., 1.5 for 1 hour 30 minutes)"
)
HOURS_PRECISION_MESSAGE = "Time can have at most two decimal places (e.g., 1.25)"

# Matches NUMERIC(8, 2) on cost_trackers.time_spent
HOURS_QUANTUM = Decimal("0.01")
MAX_HOURS = Decimal("999999.99")


def parse_hours(value: Any) -> Decimal:
    """
    Convert user input to Decimal hours.

    Accepts numbers and numeric strings. Rejects booleans, non-numeric text,
    NaN, infinities, zero, negatives and more than two decimal places, since
    the column would otherwise round them silently.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(HOURS_MESSAGE, details={"time_spent": value})
    try:
        hours = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(HOURS_MESSAGE, details={"time_spent": str(value)})

    if not hours.is_finite() or hours <= 0 or hours > MAX_HOURS:
        raise ValidationError(HOURS_MESSAGE, details={"time_spent": str(value)})
    if hours != hours.quantize(HOURS_QUANTUM):
        raise ValidationError(HOURS_PRECISION_MESSAGE, details={"time_spent": str(value)})
    return hours.quantize(HOURS_QUANTUM)


def _parse_date(value: Union[dt.date, str, None]) -> dt.date:
    if value is None or value == "":
        raise ValidationError("Date is required", details={"date": "required"})
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError("Date must be YYYY-MM-DD", details={"date": str(value)})


def _highest_seq(db: Session) -> int:
    return db.exec(select(func.max(TimeCostEntry.seq))).one() or 0


def add_entry(
    db: Session,
    request_id: str,
    user_id: str,
    entry_date: Union[dt.date, str],
    hours: Any,
    notes: Optional[str] = None,
    actor: Optional[Profile] = None,
) -> TimeCostEntry:
    """
    Log time spent by one profile on one request on one day.

    The profile's current full name is copied into `user_name` and stays as
    it was even if the profile is renamed later. The request id is not
    checked against the requests table.
    """
    if not request_id:
        raise ValidationError("Request is required", details={"request_id": "required"})
    if not user_id:
        raise ValidationError("Team member is required", details={"user_id": "required"})
    entry_day = _parse_date(entry_date)
    time_spent = parse_hours(hours)

    with store_errors("load profile"):
        profile = db.get(Profile, user_id)
    if profile is None:
        raise NotFoundError("Profile", user_id)

    entry = TimeCostEntry(
        request_id=request_id,
        user_id=profile.id,
        user_name=profile.full_name,
        date=entry_day,
        time_spent=time_spent,
        notes=(notes or "").strip(),
    )
    with transaction(db, "add time entry"):
        entry.seq = next_sequence_value(
            db, ENTRY_SEQUENCE, "time entry sequence", seed=_highest_seq
        )
        db.add(entry)
        record_activity(
            db, actor or profile, "logged time", EntityType.COST_TRACKER, entry.id,
            details=f"Logged {time_spent} h for {profile.full_name} on {entry_day.isoformat()}",
            request_id=request_id,
        )

    db.refresh(entry)
    logger.info(
        "Logged %s h on request %s", time_spent, request_id,
        extra={"entry_id": entry.id, "request_id": request_id, "user_id": user_id},
    )
    return entry


def get_entry(db: Session, entry_id: str) -> TimeCostEntry:
    with store_errors("load time entry"):
        entry = db.get(TimeCostEntry, entry_id)
    if entry is None:
        raise NotFoundError("TimeCostEntry", entry_id)
    return entry


def delete_entry(db: Session, entry_id: str, actor: Optional[Profile] = None) -> None:
    entry = get_entry(db, entry_id)
    request_id = entry.request_id
    details = f"Deleted {entry.time_spent} h logged by {entry.user_name}"
    with transaction(db, "delete time entry"):
        db.delete(entry)
        record_activity(
            db, actor, "deleted", EntityType.COST_TRACKER, entry_id,
            details=details,
            request_id=request_id,
        )
    logger.info("Deleted time entry %s", entry_id, extra={"entry_id": entry_id})


def list_entries(db: Session, request_id: str) -> List[TimeCostEntry]:
    """Entries of one request, most recent work day first."""
    statement = (
        select(TimeCostEntry)
        .where(TimeCostEntry.request_id == request_id)
        .order_by(
            TimeCostEntry.date.desc(),
            TimeCostEntry.created_at.desc(),
            TimeCostEntry.seq.desc(),
        )
    )
    with store_errors("list time entries"):
        return list(db.exec(statement).all())


def total_for(db: Session, request_id: str) -> Decimal:
    """Exact sum of the hours logged on a request; Decimal("0") when none."""
    return sum((Decimal(entry.time_spent) for entry in list_entries(db, request_id)), Decimal("0"))

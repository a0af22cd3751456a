"""
Report Aggregator

Derives time-cost reports by joining ledger entries with their requests and
clients at query time. Nothing is stored and nothing is mutated.
"""
import calendar
import datetime as dt
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Union

from sqlmodel import Session, select

from worktrack.core.exceptions import ValidationError
from worktrack.db.session import store_errors
from worktrack.models.client import Client
from worktrack.models.cost_tracker import TimeCostEntry
from worktrack.models.report import (
    NO_CLIENT,
    DateRange,
    GroupFilter,
    GroupKind,
    Report,
    ReportMode,
    ReportRow,
    SortDirection,
    SortField,
)
from worktrack.models.request import Request

logger = logging.getLogger(__name__)

TEAM_REPORT_DEFAULT_DAYS = 30


def default_date_range(kind: Union[GroupKind, str] = GroupKind.ALL, today: Optional[dt.date] = None) -> DateRange:
    """
    Initial range of the report screens.

    Client reports cover the current calendar month; team reports cover the
    last 30 days up to today.
    """
    today = today or dt.date.today()
    if GroupKind(kind) == GroupKind.CLIENT:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return DateRange(start=today.replace(day=1), end=today.replace(day=last_day))
    return DateRange(start=today - dt.timedelta(days=TEAM_REPORT_DEFAULT_DAYS), end=today)


def _request_number_key(number: str) -> Tuple[int, str]:
    return len(number), number


def sort_rows(
    rows: List[ReportRow],
    field: Union[SortField, str] = SortField.DATE,
    direction: Union[SortDirection, str] = SortDirection.DESC,
) -> List[ReportRow]:
    """
    Sort by date or request number. Python's sort is stable in both
    directions, so equal keys keep their input order.
    """
    field = SortField(field)
    reverse = SortDirection(direction) == SortDirection.DESC
    if field == SortField.REQUEST_NUMBER:
        return sorted(rows, key=lambda row: _request_number_key(row.request_number), reverse=reverse)
    return sorted(rows, key=lambda row: row.date, reverse=reverse)


def aggregate_rows(rows: List[ReportRow]) -> List[ReportRow]:
    """
    Collapse rows into one per (request, team member).

    Hours are summed, the row keeps the latest date and the most recent
    non-empty note, and the result is ordered by total hours, largest first.
    """
    grouped: Dict[Tuple[str, str], ReportRow] = {}
    for row in sorted(rows, key=lambda r: r.date):
        key = (row.request_id, row.user_id)
        current = grouped.get(key)
        if current is None:
            grouped[key] = row.model_copy()
            continue
        current.hours_spent += row.hours_spent
        current.date = max(current.date, row.date)
        current.team_member = row.team_member
        if row.notes and row.notes.strip():
            current.notes = row.notes

    return sorted(grouped.values(), key=lambda r: r.hours_spent, reverse=True)


def build_report(
    db: Session,
    date_range: DateRange,
    group: Optional[GroupFilter] = None,
    sort_field: Union[SortField, str] = SortField.DATE,
    direction: Union[SortDirection, str] = SortDirection.DESC,
    mode: Union[ReportMode, str] = ReportMode.ENTRIES,
) -> Report:
    """
    Build a time-cost report.

    Args:
        date_range: Inclusive range of work days
        group: Restrict to one team member or one client; everyone by default
        sort_field: "date" or "request_number" (entries mode only)
        direction: "asc" or "desc" (entries mode only)
        mode: "entries" for one row per entry, "aggregated" for one row per
              request and team member

    Entries whose request no longer exists are left out. `total_hours` is the
    sum over the returned rows.
    """
    if date_range.start > date_range.end:
        raise ValidationError(
            "Start date must be on or before end date",
            details={"start": date_range.start.isoformat(), "end": date_range.end.isoformat()},
        )
    group = group or GroupFilter.all()
    if group.kind != GroupKind.ALL and not group.value:
        raise ValidationError("Select a team member or client", details={"group": group.kind.value})
    mode = ReportMode(mode)

    statement = (
        select(TimeCostEntry)
        .where(TimeCostEntry.date >= date_range.start, TimeCostEntry.date <= date_range.end)
        .order_by(TimeCostEntry.created_at, TimeCostEntry.seq)
    )
    if group.kind == GroupKind.MEMBER:
        statement = statement.where(TimeCostEntry.user_id == group.value)

    with store_errors("build report"):
        entries = db.exec(statement).all()
        requests = {request.id: request for request in db.exec(select(Request)).all()}
        clients = {client.id: client for client in db.exec(select(Client)).all()}

    rows: List[ReportRow] = []
    orphaned = 0
    for entry in entries:
        request = requests.get(entry.request_id)
        if request is None:
            orphaned += 1
            continue
        if group.kind == GroupKind.CLIENT and request.client_id != group.value:
            continue

        client = clients.get(request.client_id) if request.client_id else None
        rows.append(
            ReportRow(
                request_id=entry.request_id,
                request_number=request.request_number,
                team_member=entry.user_name,
                user_id=entry.user_id,
                client=client.company if client and client.company else NO_CLIENT,
                hours_spent=Decimal(entry.time_spent),
                date=entry.date,
                notes=entry.notes or "",
            )
        )

    if orphaned:
        logger.debug("Skipped %d time entries whose request was deleted", orphaned)

    if mode == ReportMode.AGGREGATED:
        rows = aggregate_rows(rows)
    else:
        rows = sort_rows(rows, sort_field, direction)

    total = sum((row.hours_spent for row in rows), Decimal("0"))
    return Report(date_range=date_range, group=group, mode=mode, rows=rows, total_hours=total)

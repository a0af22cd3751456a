"""
Report Endpoints Module

Time-cost reports over an inclusive date range, for everyone, one team member
or one client. Omitted dates fall back to the defaults of the report screens.
"""
import datetime as dt
from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session

from worktrack.db.session import get_db
from worktrack.models.profile import Profile
from worktrack.models.report import (
    DateRange,
    GroupFilter,
    GroupKind,
    Report,
    ReportMode,
    SortDirection,
    SortField,
)
from worktrack.services import reports
from worktrack.api import deps

router = APIRouter()


@router.get("", response_model=Report)
def read_report(
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
    group: GroupKind = GroupKind.ALL,
    value: Optional[str] = None,
    sort: SortField = SortField.DATE,
    direction: SortDirection = SortDirection.DESC,
    mode: ReportMode = ReportMode.ENTRIES,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Build a report.

    Args:
        start, end: Inclusive range; each defaults independently
        group: "all", "member" or "client"
        value: Profile id or client id when group is not "all"
        sort, direction: Row order in entries mode
        mode: "entries" or "aggregated"
    """
    defaults = reports.default_date_range(group)
    date_range = DateRange(start=start or defaults.start, end=end or defaults.end)
    return reports.build_report(
        db,
        date_range,
        group=GroupFilter(kind=group, value=value),
        sort_field=sort,
        direction=direction,
        mode=mode,
    )

"""
Report Schemas Module

Read-only shapes produced by the report aggregator. Nothing here is stored.
"""
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel

NO_CLIENT = "No Client"


class GroupKind(str, Enum):
    ALL = "all"
    MEMBER = "member"
    CLIENT = "client"


class SortField(str, Enum):
    DATE = "date"
    REQUEST_NUMBER = "request_number"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ReportMode(str, Enum):
    ENTRIES = "entries"        # one row per time-cost entry
    AGGREGATED = "aggregated"  # one row per (request, team member)


class DateRange(BaseModel):
    """Inclusive calendar-day range."""
    start: dt.date
    end: dt.date

    def contains(self, day: dt.date) -> bool:
        return self.start <= day <= self.end


class GroupFilter(BaseModel):
    """
    Restricts a report to one team member, one client, or nobody in particular.
    """
    kind: GroupKind = GroupKind.ALL
    value: Optional[str] = None

    @classmethod
    def all(cls) -> "GroupFilter":
        return cls()

    @classmethod
    def member(cls, user_id: str) -> "GroupFilter":
        return cls(kind=GroupKind.MEMBER, value=user_id)

    @classmethod
    def client(cls, client_id: str) -> "GroupFilter":
        return cls(kind=GroupKind.CLIENT, value=client_id)


class ReportRow(BaseModel):
    request_id: str
    request_number: str
    team_member: str
    user_id: str
    client: str
    hours_spent: Decimal
    date: dt.date
    notes: str = ""


class Report(BaseModel):
    date_range: DateRange
    group: GroupFilter
    mode: ReportMode
    rows: List[ReportRow] = []
    total_hours: Decimal = Decimal("0")

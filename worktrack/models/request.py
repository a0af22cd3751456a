"""
Request Model Module

This module defines the Request aggregate: a unit of client-requested work with
a sequential number, a status, an optional assignee and client, embedded links
and image URLs. Comments and time-cost entries live in their own tables and
reference the request by id.
"""
import datetime as dt
from enum import Enum
from typing import Optional, List
from sqlmodel import SQLModel, Field, AutoString, Column, JSON
import uuid

from worktrack.models.base import utcnow_iso
from worktrack.models.link import Link, LinkCreate

# Sentinel accepted by `assigned_to` in place of a profile id
EVERYONE = "Everyone"


class RequestStatus(str, Enum):
    """
    Lifecycle states of a request.

    The workflow is a flat enumeration: any status may be set from any other.
    SUBMITTED is the initial state of new work, DRAFT the alternate initial
    state for work not ready to be seen, COMPLETED is applied to the source
    of a clone.
    """
    SUBMITTED = "submitted"
    DRAFT = "draft"
    IN_PROGRESS = "in progress"
    AWAITING_FEEDBACK = "awaiting feedback"
    PENDING_APPROVAL = "pending approval"
    COMPLETED = "completed"
    CANCELED = "canceled"


class RequestType(str, Enum):
    """Closed set of work categories."""
    ANIMATION = "Animation"
    VIDEO_EDITING = "Video Editing"
    DESIGN_3D = "3D Design"
    WEB_DESIGN = "Web Design"
    DESIGN_FOR_PRINT = "Design for Print"
    PRESENTATION = "Presentation"
    MARKET_RESEARCH = "Market Research"
    PHOTOGRAPHY = "Photography"
    VIDEOGRAPHY = "Videography"
    SOCIAL_MEDIA = "Social Media"
    DIGITAL_MARKETING = "Digital Marketing"
    MEDIA_MANAGEMENT = "Media Management"
    COMPANY_EVENTS = "Company Events"
    BRAND_DESIGN = "Brand Design"
    BRAND_MANAGEMENT = "Brand Management"
    PRE_PRODUCTION = "Pre-Production"
    BUDGETING_STRATEGY = "Budgeting & Strategy"
    TEAM_LOGISTICS = "Team & Logistics"
    CLIENT_INTERACTION = "Client Interaction"
    DIRECTING = "Directing"
    SOUND_DESIGN = "Sound Design"
    SOUND_ENGINEERING = "Sound Engineering"
    PROJECT_MANAGEMENT = "Project Management"
    ACCOUNTING = "Accounting"
    OTHER = "Other"


class RequestBase(SQLModel):
    """
    Fields a user may edit on a request.
    """
    title: str = Field(nullable=False)
    request_type: RequestType = Field(default=RequestType.OTHER, sa_type=AutoString)
    status: RequestStatus = Field(default=RequestStatus.SUBMITTED, sa_type=AutoString, index=True)

    due_date: Optional[dt.date] = None

    # Profile id, the EVERYONE sentinel, or None
    assigned_to: Optional[str] = None
    client_id: Optional[str] = Field(default=None, foreign_key="clients.id")

    # Rich text (HTML) body
    details: Optional[str] = ""


class Request(RequestBase, table=True):
    """
    Request table model.

    `request_number` is allocated once from the request_number sequence and
    never changes. The UNIQUE constraint is the last line of defence against
    two creations racing for the same number.
    """
    __tablename__ = "requests"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    request_number: str = Field(unique=True, index=True, nullable=False)

    # Embedded sub-records stored as JSON arrays
    links: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Creator; the name is a point-in-time copy of the profile's full_name
    created_by: Optional[str] = Field(default=None, foreign_key="profiles.id")
    creator_name: Optional[str] = None

    created_at: Optional[str] = Field(default_factory=utcnow_iso)
    updated_at: Optional[str] = Field(default_factory=utcnow_iso)


class RequestCreate(RequestBase):
    """Schema for creating a request. Status may only be submitted or draft."""
    links: List[LinkCreate] = []
    images: List[str] = []


class RequestUpdate(SQLModel):
    """Schema for updating a request; only supplied fields change."""
    title: Optional[str] = None
    request_type: Optional[RequestType] = None
    status: Optional[RequestStatus] = None
    due_date: Optional[dt.date] = None
    assigned_to: Optional[str] = None
    client_id: Optional[str] = None
    details: Optional[str] = None


class RequestRead(RequestBase):
    """Schema for reading a request."""
    id: str
    request_number: str
    links: List[Link] = []
    images: List[str] = []
    created_by: Optional[str] = None
    creator_name: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class RequestClone(SQLModel):
    """
    Options for cloning a request.

    Attributes:
        has_unsaved_changes: The caller still holds edits it has not saved
        expected_updated_at: `updated_at` of the copy the caller is looking at
        due_date: Due date of the follow-up request
    """
    has_unsaved_changes: bool = False
    expected_updated_at: Optional[str] = None
    due_date: Optional[dt.date] = None


class RequestStatusBulkUpdate(SQLModel):
    """Schema for changing the status of several requests at once."""
    ids: List[str]
    status: RequestStatus


class ImageAttach(SQLModel):
    url: str

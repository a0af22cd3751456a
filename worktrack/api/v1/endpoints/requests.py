"""
Request Endpoints Module

This module provides endpoints for requests and everything hanging off them:
links, image URLs, comments and time entries. Assignment notifications are
queued as background tasks so delivery never delays or fails the response.
"""
import datetime as dt
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlmodel import Session

from worktrack.db.session import get_db
from worktrack.models.comment import CommentCreate, RequestComment
from worktrack.models.cost_tracker import (
    RequestTimeSummary,
    TimeCostEntryCreate,
    TimeCostEntryRead,
)
from worktrack.models.link import Link, LinkCreate
from worktrack.models.profile import Profile
from worktrack.models.request import (
    ImageAttach,
    Request,
    RequestClone,
    RequestCreate,
    RequestRead,
    RequestStatus,
    RequestStatusBulkUpdate,
    RequestUpdate,
)
from worktrack.services import ledger, notifications, requests
from worktrack.api import deps

router = APIRouter()


def _queue_assignment_notices(background_tasks: BackgroundTasks, db: Session, request: Request) -> None:
    notices = notifications.build_assignment_notices(db, request)
    if notices:
        background_tasks.add_task(notifications.dispatch_assignment_notices, notices)


@router.get("", response_model=List[RequestRead])
def list_requests(
    status: Optional[List[RequestStatus]] = Query(default=None),
    search: Optional[str] = None,
    due_from: Optional[dt.date] = None,
    due_to: Optional[dt.date] = None,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Retrieve requests, newest first.

    Repeat `status` to filter on several statuses. `due_from`/`due_to` restrict
    the due date, as used by the calendar view.
    """
    return requests.list_requests(db, statuses=status, search=search, due_from=due_from, due_to=due_to)


@router.post("", response_model=RequestRead, status_code=201)
def create_request(
    request_in: RequestCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Create a new request. The request number is allocated by the server.

    Returns 409 if the number was taken by a concurrent creation; retrying
    allocates a fresh one.
    """
    request = requests.create_request(db, request_in, current_user)
    _queue_assignment_notices(background_tasks, db, request)
    return request


@router.post("/bulk-status", response_model=List[RequestRead])
def set_status_bulk(
    bulk_in: RequestStatusBulkUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Set the same status on several requests. All or nothing.
    """
    return requests.set_status_bulk(db, bulk_in.ids, bulk_in.status, current_user)


@router.get("/{request_id}", response_model=RequestRead)
def read_request(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    return requests.get_request(db, request_id)


@router.patch("/{request_id}", response_model=RequestRead)
def update_request(
    request_id: str,
    request_in: RequestUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Update a request. Only the supplied fields change; the request number and
    creation fields cannot be edited.
    """
    previous_assignee = requests.get_request(db, request_id).assigned_to
    request = requests.update_request(db, request_id, request_in, current_user)
    if request.assigned_to and request.assigned_to != previous_assignee:
        _queue_assignment_notices(background_tasks, db, request)
    return request


@router.delete("/{request_id}")
def delete_request(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Delete a request with its links and comments. Logged time is kept but no
    longer shows up in reports.
    """
    requests.delete_request(db, request_id, current_user)
    return {"ok": True}


@router.post("/{request_id}/clone", response_model=RequestRead, status_code=201)
def clone_request(
    request_id: str,
    options: Optional[RequestClone] = None,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Mark the request completed and create a follow-up copy with a new number.
    """
    options = options or RequestClone()
    return requests.clone_request(
        db,
        request_id,
        current_user,
        has_unsaved_changes=options.has_unsaved_changes,
        expected_updated_at=options.expected_updated_at,
        due_date=options.due_date,
    )


# === Links ===

@router.post("/{request_id}/links", response_model=Link, status_code=201)
def add_link(
    request_id: str,
    link_in: LinkCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    return requests.add_request_link(db, request_id, link_in, current_user)


@router.delete("/{request_id}/links/{link_id}")
def delete_link(
    request_id: str,
    link_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    requests.delete_request_link(db, request_id, link_id, current_user)
    return {"ok": True}


# === Images ===

@router.post("/{request_id}/images", response_model=RequestRead)
def add_image(
    request_id: str,
    image_in: ImageAttach,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Attach the URL of an image that was uploaded to file storage.
    """
    return requests.add_image(db, request_id, image_in.url, current_user)


@router.delete("/{request_id}/images", response_model=RequestRead)
def remove_image(
    request_id: str,
    url: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    return requests.remove_image(db, request_id, url, current_user)


# === Comments ===

@router.get("/{request_id}/comments", response_model=List[RequestComment])
def list_comments(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Comments on a request, newest first.
    """
    return requests.list_comments(db, request_id)


@router.post("/{request_id}/comments", response_model=RequestComment, status_code=201)
def add_comment(
    request_id: str,
    comment_in: CommentCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    return requests.add_comment(db, request_id, current_user, comment_in.text)


# === Time entries ===

@router.get("/{request_id}/time", response_model=RequestTimeSummary)
def read_time(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Time entries logged on a request together with their exact total.
    """
    requests.get_request(db, request_id)
    entries = ledger.list_entries(db, request_id)
    total = ledger.total_for(db, request_id)
    return RequestTimeSummary(
        request_id=request_id,
        total_hours=total,
        entries=[TimeCostEntryRead.model_validate(entry, from_attributes=True) for entry in entries],
    )


@router.post("/{request_id}/time", response_model=TimeCostEntryRead, status_code=201)
def log_time(
    request_id: str,
    entry_in: TimeCostEntryCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Log hours on a request, for the current profile unless `user_id` names
    another team member.
    """
    requests.get_request(db, request_id)
    return ledger.add_entry(
        db,
        request_id,
        entry_in.user_id or current_user.id,
        entry_in.date,
        entry_in.time_spent,
        notes=entry_in.notes,
        actor=current_user,
    )

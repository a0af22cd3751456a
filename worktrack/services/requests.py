"""
Request Entity Manager

Create, update, clone and delete requests, plus the embedded links, image URLs
and the comments attached to them. Every mutation writes an activity log row
in the same transaction.
"""
import copy
import datetime as dt
import logging
from typing import Iterable, List, Optional, Union

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from worktrack.core.exceptions import ConcurrencyHazard, NotFoundError, ValidationError
from worktrack.db.session import store_errors, transaction
from worktrack.models.activity import EntityType
from worktrack.models.base import utcnow_iso
from worktrack.models.client import Client
from worktrack.models.comment import RequestComment
from worktrack.models.link import LinkCreate
from worktrack.models.profile import Profile
from worktrack.models.request import (
    EVERYONE,
    Request,
    RequestCreate,
    RequestStatus,
    RequestUpdate,
)
from worktrack.services._schemas import validate_fields
from worktrack.services.activity import field_changes, record_activity
from worktrack.services.allocator import next_request_number
from worktrack.services.links import new_link, without_link

logger = logging.getLogger(__name__)

INITIAL_STATUSES = (RequestStatus.SUBMITTED, RequestStatus.DRAFT)

# Copied from the source request by clone_request
CLONED_FIELDS = ("title", "request_type", "details", "client_id", "links")


def _require_title(title: Optional[str]) -> None:
    if title is None or not title.strip():
        raise ValidationError("Please enter a request title", details={"title": "required"})


def _check_assignee(db: Session, assigned_to: Optional[str]) -> None:
    if not assigned_to or assigned_to == EVERYONE:
        return
    if db.get(Profile, assigned_to) is None:
        raise ValidationError("Unknown assignee", details={"assigned_to": assigned_to})


def _check_client(db: Session, client_id: Optional[str]) -> None:
    if client_id and db.get(Client, client_id) is None:
        raise ValidationError("Unknown client", details={"client_id": client_id})


def _escape_like(text: str) -> str:
    """Make `%` and `_` in user input match literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def get_request(db: Session, request_id: str) -> Request:
    with store_errors("load request"):
        request = db.get(Request, request_id)
    if not request:
        raise NotFoundError("Request", request_id)
    return request


def list_requests(
    db: Session,
    statuses: Optional[Iterable[Union[RequestStatus, str]]] = None,
    search: Optional[str] = None,
    due_from: Optional[dt.date] = None,
    due_to: Optional[dt.date] = None,
) -> List[Request]:
    """
    Requests newest first, optionally filtered.

    Args:
        statuses: Keep only requests in one of these statuses
        search: Case-insensitive match on title or request number
        due_from: Keep only requests due on or after this day (calendar view)
        due_to: Keep only requests due on or before this day
    """
    statement = select(Request)
    if statuses:
        values = [RequestStatus(s).value for s in statuses]
        statement = statement.where(Request.status.in_(values))
    if search and search.strip():
        pattern = f"%{_escape_like(search.strip().lower())}%"
        statement = statement.where(
            or_(
                func.lower(Request.title).like(pattern, escape="\\"),
                Request.request_number.like(pattern, escape="\\"),
            )
        )
    if due_from:
        statement = statement.where(Request.due_date >= due_from)
    if due_to:
        statement = statement.where(Request.due_date <= due_to)
    statement = statement.order_by(Request.created_at.desc())

    with store_errors("list requests"):
        return list(db.exec(statement).all())


def create_request(db: Session, fields: Union[RequestCreate, dict], actor: Profile) -> Request:
    """
    Create a request with the next request number.

    Status defaults to submitted; draft is the only other allowed starting
    state. Raises ConcurrencyHazard if the number turned out to be taken.
    """
    data = validate_fields(RequestCreate, fields, "Invalid request fields")
    _require_title(data.title)
    status = data.status or RequestStatus.SUBMITTED
    if status not in INITIAL_STATUSES:
        raise ValidationError(
            "New requests start as submitted or draft",
            details={"status": RequestStatus(status).value},
        )
    _check_assignee(db, data.assigned_to)
    _check_client(db, data.client_id)
    links = [new_link(link) for link in data.links]

    now = utcnow_iso()
    number = None
    try:
        with transaction(db, "create request"):
            number = next_request_number(db)
            request = Request(
                request_number=number,
                title=data.title.strip(),
                request_type=data.request_type,
                status=status,
                due_date=data.due_date,
                assigned_to=data.assigned_to or None,
                client_id=data.client_id or None,
                details=data.details or "",
                links=links,
                images=list(data.images),
                created_by=actor.id,
                creator_name=actor.full_name,
                created_at=now,
                updated_at=now,
            )
            db.add(request)
            db.flush()
            record_activity(
                db, actor, "created", EntityType.REQUEST, request.id,
                details=f"Created request #{number}: {request.title}",
                request_id=request.id,
            )
    except IntegrityError as exc:
        logger.warning("Request number %s was taken concurrently", number)
        raise ConcurrencyHazard(number) from exc

    db.refresh(request)
    logger.info(
        "Created request #%s", request.request_number,
        extra={"request_id": request.id, "request_number": request.request_number},
    )
    return request


def update_request(
    db: Session, request_id: str, fields: Union[RequestUpdate, dict], actor: Profile
) -> Request:
    """
    Merge the supplied fields into a request.

    `request_number`, `created_at` and `created_by` are not part of the update
    schema and are ignored if present. Last write wins.
    """
    update_in = validate_fields(RequestUpdate, fields, "Invalid request fields")
    update_data = update_in.model_dump(exclude_unset=True)

    if "title" in update_data:
        _require_title(update_data["title"])
        update_data["title"] = update_data["title"].strip()
    for required in ("status", "request_type"):
        if required in update_data and update_data[required] is None:
            raise ValidationError(f"{required} cannot be empty", details={required: "required"})
    if "assigned_to" in update_data:
        update_data["assigned_to"] = update_data["assigned_to"] or None
        _check_assignee(db, update_data["assigned_to"])
    if "client_id" in update_data:
        update_data["client_id"] = update_data["client_id"] or None
        _check_client(db, update_data["client_id"])

    request = get_request(db, request_id)
    before = {"status": request.status, "due_date": request.due_date}
    changes = field_changes(before, update_data)

    with transaction(db, "update request"):
        for key, value in update_data.items():
            setattr(request, key, value)
        request.updated_at = utcnow_iso()
        db.add(request)
        record_activity(
            db, actor, "updated", EntityType.REQUEST, request.id,
            details=f"Updated request #{request.request_number}",
            request_id=request.id,
            changes=changes,
        )

    db.refresh(request)
    logger.info("Updated request #%s", request.request_number, extra={"request_id": request.id})
    return request


def clone_request(
    db: Session,
    request_id: str,
    actor: Profile,
    *,
    has_unsaved_changes: bool = False,
    expected_updated_at: Optional[str] = None,
    due_date: Optional[dt.date] = None,
) -> Request:
    """
    Close out a request and start a follow-up with the same brief.

    In one transaction the source is marked completed and a new request is
    inserted with a fresh number, status submitted and copies of the title,
    type, details, client and links. The caller must have saved its edits:
    pending changes, or a copy older than the stored one, are rejected.

    Returns:
        The new request.
    """
    if has_unsaved_changes:
        raise ValidationError("Please save your changes before cloning this request.")

    source = get_request(db, request_id)
    if expected_updated_at is not None and expected_updated_at != source.updated_at:
        raise ValidationError(
            "This request was changed since it was loaded. Reload it before cloning.",
            details={"updated_at": source.updated_at},
        )

    now = utcnow_iso()
    number = None
    try:
        with transaction(db, "clone request"):
            changes = field_changes({"status": source.status}, {"status": RequestStatus.COMPLETED})
            source.status = RequestStatus.COMPLETED
            source.updated_at = now
            db.add(source)

            number = next_request_number(db)
            copied = {field: copy.deepcopy(getattr(source, field)) for field in CLONED_FIELDS}
            copied["links"] = copied["links"] or []
            clone = Request(
                request_number=number,
                status=RequestStatus.SUBMITTED,
                due_date=due_date,
                created_by=actor.id,
                creator_name=actor.full_name,
                created_at=now,
                updated_at=now,
                **copied,
            )
            db.add(clone)
            db.flush()

            record_activity(
                db, actor, "completed", EntityType.REQUEST, source.id,
                details=f"Completed request #{source.request_number} by cloning it as #{number}",
                request_id=source.id,
                changes=changes,
            )
            record_activity(
                db, actor, "cloned", EntityType.REQUEST, clone.id,
                details=f"Cloned request #{source.request_number} as #{number}",
                request_id=clone.id,
            )
    except IntegrityError as exc:
        logger.warning("Request number %s was taken concurrently", number)
        raise ConcurrencyHazard(number) from exc

    db.refresh(clone)
    db.refresh(source)
    logger.info(
        "Cloned request #%s as #%s", source.request_number, clone.request_number,
        extra={"request_id": clone.id, "request_number": clone.request_number},
    )
    return clone


def delete_request(db: Session, request_id: str, actor: Profile) -> None:
    """
    Delete a request with its links and comments.

    Time-cost entries that reference the request are left untouched; reports
    skip them from then on.
    """
    request = get_request(db, request_id)
    number = request.request_number

    with transaction(db, "delete request"):
        comments = db.exec(
            select(RequestComment).where(RequestComment.request_id == request_id)
        ).all()
        for comment in comments:
            db.delete(comment)
        # Comments reference the request, remove them first
        db.flush()
        db.delete(request)
        record_activity(
            db, actor, "deleted", EntityType.REQUEST, request_id,
            details=f"Deleted request #{number}",
            request_id=request_id,
        )

    logger.info("Deleted request #%s", number, extra={"request_id": request_id})


def set_status_bulk(
    db: Session, request_ids: List[str], status: Union[RequestStatus, str], actor: Profile
) -> List[Request]:
    """
    Set one status on several requests in a single transaction.

    An unknown id aborts the whole batch before anything is written.
    """
    try:
        status = RequestStatus(status)
    except ValueError as exc:
        raise ValidationError("Unknown status", details={"status": str(status)}) from exc

    ids = list(dict.fromkeys(request_ids))
    if not ids:
        return []
    with store_errors("load requests"):
        found = {r.id: r for r in db.exec(select(Request).where(Request.id.in_(ids))).all()}
    missing = [request_id for request_id in ids if request_id not in found]
    if missing:
        raise NotFoundError("Request", missing[0])

    now = utcnow_iso()
    with transaction(db, "bulk status update"):
        for request_id in ids:
            request = found[request_id]
            changes = field_changes({"status": request.status}, {"status": status})
            request.status = status
            request.updated_at = now
            db.add(request)
            record_activity(
                db, actor, "updated", EntityType.REQUEST, request.id,
                details=f"Set request #{request.request_number} to {status.value}",
                request_id=request.id,
                changes=changes,
            )

    updated = [found[request_id] for request_id in ids]
    for request in updated:
        db.refresh(request)
    logger.info("Set %d requests to %s", len(updated), status.value)
    return updated


# --- Links ---------------------------------------------------------------------

def add_request_link(
    db: Session, request_id: str, fields: Union[LinkCreate, dict], actor: Profile
) -> dict:
    link = new_link(fields)
    request = get_request(db, request_id)
    with transaction(db, "add link"):
        request.links = [*(request.links or []), link]
        request.updated_at = utcnow_iso()
        db.add(request)
        record_activity(
            db, actor, "added", EntityType.LINK, link["id"],
            details=f"Added link {link['name']}",
            request_id=request.id,
        )
    return link


def delete_request_link(db: Session, request_id: str, link_id: str, actor: Profile) -> None:
    request = get_request(db, request_id)
    remaining = without_link(request.links, link_id)
    with transaction(db, "delete link"):
        request.links = remaining
        request.updated_at = utcnow_iso()
        db.add(request)
        record_activity(
            db, actor, "deleted", EntityType.LINK, link_id,
            details="Deleted link",
            request_id=request.id,
        )


# --- Images --------------------------------------------------------------------

def add_image(db: Session, request_id: str, url: str, actor: Profile) -> Request:
    """Attach an uploaded image URL. The URL is stored as given."""
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("Image URL is required", details={"url": "required"})
    request = get_request(db, request_id)
    with transaction(db, "add image"):
        request.images = [*(request.images or []), url]
        request.updated_at = utcnow_iso()
        db.add(request)
    db.refresh(request)
    return request


def remove_image(db: Session, request_id: str, url: str, actor: Profile) -> Request:
    request = get_request(db, request_id)
    if url not in (request.images or []):
        raise NotFoundError("Image", url)
    with transaction(db, "remove image"):
        request.images = [image for image in request.images if image != url]
        request.updated_at = utcnow_iso()
        db.add(request)
    db.refresh(request)
    return request


# --- Comments ------------------------------------------------------------------

def add_comment(db: Session, request_id: str, actor: Profile, text: str) -> RequestComment:
    """
    Attach a comment. The author's current name is copied onto it.
    """
    if not text or not text.strip():
        raise ValidationError("Comment cannot be empty", details={"text": "required"})
    request = get_request(db, request_id)

    comment = RequestComment(
        request_id=request.id,
        author_id=actor.id,
        author_name=actor.full_name,
        text=text.strip(),
    )
    with transaction(db, "add comment"):
        db.add(comment)
        db.flush()
        record_activity(
            db, actor, "commented", EntityType.COMMENT, str(comment.id),
            details=f"Commented on request #{request.request_number}",
            request_id=request.id,
        )
    db.refresh(comment)
    return comment


def list_comments(db: Session, request_id: str, newest_first: bool = True) -> List[RequestComment]:
    get_request(db, request_id)
    order = RequestComment.id.desc() if newest_first else RequestComment.id.asc()
    with store_errors("list comments"):
        return list(
            db.exec(
                select(RequestComment).where(RequestComment.request_id == request_id).order_by(order)
            ).all()
        )

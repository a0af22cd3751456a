"""
Assignment notifications.

Notices are built inside the request (while the session is open) and delivered
afterwards from a FastAPI background task. Delivery failures are logged and
never reach the mutation that triggered them.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx
from sqlmodel import Session, select

from worktrack.core.config import settings
from worktrack.models.profile import Profile
from worktrack.models.request import EVERYONE, Request

logger = logging.getLogger(__name__)


@dataclass
class AssignmentNotice:
    to: str
    assigned_user_name: str
    request_number: str
    request_title: str
    due_date: Optional[str] = None

    def payload(self) -> dict:
        return {
            "to": self.to,
            "requestNumber": self.request_number,
            "requestTitle": self.request_title,
            "dueDate": self.due_date,
            "assignedUserName": self.assigned_user_name,
        }


def build_assignment_notices(db: Session, request: Request) -> List[AssignmentNotice]:
    """
    One notice per recipient of the request's current assignment.

    "Everyone" fans out to every profile with an email address.
    """
    if not request.assigned_to:
        return []
    if request.assigned_to == EVERYONE:
        recipients = db.exec(select(Profile)).all()
    else:
        profile = db.get(Profile, request.assigned_to)
        recipients = [profile] if profile else []

    due = request.due_date.isoformat() if request.due_date else None
    return [
        AssignmentNotice(
            to=profile.email,
            assigned_user_name=profile.full_name,
            request_number=request.request_number,
            request_title=request.title,
            due_date=due,
        )
        for profile in recipients
        if profile.email
    ]


def dispatch_assignment_notices(
    notices: List[AssignmentNotice], client: Optional[httpx.Client] = None
) -> int:
    """
    Deliver notices to the configured webhook.

    Returns:
        Number of notices delivered (or logged, when no webhook is set).
    """
    if not notices:
        return 0

    url = settings.NOTIFICATION_WEBHOOK_URL
    if not url:
        for notice in notices:
            logger.info(
                "Assignment notice for %s on request #%s (no webhook configured)",
                notice.to, notice.request_number,
            )
        return len(notices)

    owns_client = client is None
    client = client or httpx.Client(timeout=settings.NOTIFICATION_TIMEOUT_SECONDS)
    delivered = 0
    try:
        for notice in notices:
            try:
                response = client.post(url, json=notice.payload())
                response.raise_for_status()
            except httpx.HTTPError:
                logger.exception(
                    "Failed to deliver assignment notice for request #%s to %s",
                    notice.request_number, notice.to,
                )
                continue
            delivered += 1
    finally:
        if owns_client:
            client.close()
    return delivered

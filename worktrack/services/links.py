"""
Helpers for the embedded link arrays on requests and clients.

Links are stored as plain dicts; every change builds a new list so SQLAlchemy
sees the JSON column as modified.
"""
import uuid
from typing import List, Union

from pydantic import ValidationError as PydanticValidationError

from worktrack.core.exceptions import NotFoundError, ValidationError
from worktrack.core.validators import is_valid_url, sanitize_input
from worktrack.models.base import utcnow_iso
from worktrack.models.link import Link, LinkCreate


def new_link(fields: Union[LinkCreate, dict]) -> dict:
    if not isinstance(fields, LinkCreate):
        try:
            fields = LinkCreate.model_validate(fields)
        except PydanticValidationError as exc:
            raise ValidationError("Please enter both name and URL") from exc

    name = sanitize_input(fields.name or "")
    url = (fields.url or "").strip()
    if not name or not url:
        raise ValidationError(
            "Please enter both name and URL",
            details={"name": "required" if not name else "", "url": "required" if not url else ""},
        )
    if not is_valid_url(url):
        raise ValidationError("Please enter a valid URL", details={"url": url})

    link = Link(
        id=f"link-{uuid.uuid4().hex}",
        name=name,
        url=url,
        comments=sanitize_input(fields.comments or ""),
        created_at=utcnow_iso(),
    )
    return link.model_dump()


def without_link(links: List[dict], link_id: str) -> List[dict]:
    remaining = [link for link in links or [] if link.get("id") != link_id]
    if len(remaining) == len(links or []):
        raise NotFoundError("Link", link_id)
    return remaining

"""
Client service: create, edit and list clients and their links.
"""
import logging
from typing import List, Union

from sqlalchemy import func
from sqlmodel import Session, select

from worktrack.core.exceptions import NotFoundError, ValidationError
from worktrack.core.validators import (
    format_phone_number,
    is_valid_email,
    is_valid_url,
    validate_phone_number,
)
from worktrack.db.session import store_errors, transaction
from worktrack.models.activity import EntityType
from worktrack.models.base import utcnow_iso
from worktrack.models.client import Client, ClientCreate, ClientUpdate
from worktrack.models.link import LinkCreate
from worktrack.models.profile import Profile
from worktrack.services._schemas import validate_fields
from worktrack.services.activity import record_activity
from worktrack.services.links import new_link, without_link

logger = logging.getLogger(__name__)


def _clean_contact_fields(data: dict) -> dict:
    """
    Validate and normalize the contact fields present in `data`.

    Phone numbers are checked on the raw digits and stored as NNN-NNN-NNNN.
    """
    if "company" in data:
        if not data["company"] or not data["company"].strip():
            raise ValidationError("Company name is required", details={"company": "required"})
        data["company"] = data["company"].strip()

    if data.get("phone"):
        valid, error = validate_phone_number(data["phone"])
        if not valid:
            raise ValidationError(error, details={"phone": data["phone"]})
        data["phone"] = format_phone_number(data["phone"])

    if data.get("email") and not is_valid_email(data["email"]):
        raise ValidationError("Please enter a valid email address", details={"email": data["email"]})

    if data.get("website") and not is_valid_url(data["website"]):
        raise ValidationError("Please enter a valid website URL", details={"website": data["website"]})

    return data


def _client_error(details: dict) -> str:
    return "Company name is required" if "company" in details else "Invalid client fields"


def get_client(db: Session, client_id: str) -> Client:
    with store_errors("load client"):
        client = db.get(Client, client_id)
    if not client:
        raise NotFoundError("Client", client_id)
    return client


def list_clients(db: Session) -> List[Client]:
    """All clients ordered by company name, case-insensitively."""
    with store_errors("list clients"):
        return list(db.exec(select(Client).order_by(func.lower(Client.company))).all())


def create_client(db: Session, fields: Union[ClientCreate, dict], actor: Profile) -> Client:
    data = _clean_contact_fields(validate_fields(ClientCreate, fields, _client_error).model_dump())

    client = Client(**data, created_by=actor.id)
    with transaction(db, "create client"):
        db.add(client)
        record_activity(
            db, actor, "created", EntityType.CLIENT, client.id,
            details=f"Created client {client.company}",
        )
    db.refresh(client)
    logger.info("Created client %s", client.company, extra={"client_id": client.id})
    return client


def update_client(
    db: Session, client_id: str, fields: Union[ClientUpdate, dict], actor: Profile
) -> Client:
    update_in = validate_fields(ClientUpdate, fields, _client_error)
    update_data = _clean_contact_fields(update_in.model_dump(exclude_unset=True))
    client = get_client(db, client_id)

    with transaction(db, "update client"):
        for key, value in update_data.items():
            setattr(client, key, value if value is not None else "")
        client.updated_at = utcnow_iso()
        db.add(client)
        record_activity(
            db, actor, "updated", EntityType.CLIENT, client.id,
            details=f"Updated client {client.company}",
        )
    db.refresh(client)
    return client


def add_client_link(
    db: Session, client_id: str, fields: Union[LinkCreate, dict], actor: Profile
) -> dict:
    link = new_link(fields)
    client = get_client(db, client_id)
    with transaction(db, "add client link"):
        client.links = [*(client.links or []), link]
        client.updated_at = utcnow_iso()
        db.add(client)
        record_activity(
            db, actor, "added", EntityType.LINK, link["id"],
            details=f"Added link {link['name']} to client {client.company}",
        )
    return link


def delete_client_link(db: Session, client_id: str, link_id: str, actor: Profile) -> None:
    client = get_client(db, client_id)
    remaining = without_link(client.links, link_id)
    with transaction(db, "delete client link"):
        client.links = remaining
        client.updated_at = utcnow_iso()
        db.add(client)
        record_activity(
            db, actor, "deleted", EntityType.LINK, link_id,
            details=f"Deleted link from client {client.company}",
        )

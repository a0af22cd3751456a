"""
Client Endpoints Module

This module provides endpoints for managing clients and their links.
Clients are shared by the whole team and are never deleted.
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlmodel import Session

from worktrack.db.session import get_db
from worktrack.models.client import ClientCreate, ClientRead, ClientUpdate
from worktrack.models.link import Link, LinkCreate
from worktrack.models.profile import Profile
from worktrack.services import clients
from worktrack.api import deps

router = APIRouter()


@router.get("", response_model=List[ClientRead])
def list_clients(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Retrieve all clients ordered by company name.
    """
    return clients.list_clients(db)


@router.post("", response_model=ClientRead, status_code=201)
def create_client(
    client_in: ClientCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    """
    Create a new client.

    The phone number is validated and stored as NNN-NNN-NNNN.
    """
    return clients.create_client(db, client_in, current_user)


@router.get("/{client_id}", response_model=ClientRead)
def read_client(
    client_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    return clients.get_client(db, client_id)


@router.patch("/{client_id}", response_model=ClientRead)
def update_client(
    client_id: str,
    client_in: ClientUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    return clients.update_client(db, client_id, client_in, current_user)


@router.post("/{client_id}/links", response_model=Link, status_code=201)
def add_client_link(
    client_id: str,
    link_in: LinkCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    return clients.add_client_link(db, client_id, link_in, current_user)


@router.delete("/{client_id}/links/{link_id}")
def delete_client_link(
    client_id: str,
    link_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(deps.get_current_active_user),
):
    clients.delete_client_link(db, client_id, link_id, current_user)
    return {"ok": True}

"""
Client Model Module

This module defines the Client model representing the companies requests are
done for. Clients are shared resources; they are created and edited but never
deleted.
"""
from typing import Optional, List
from sqlmodel import SQLModel, Field, Column, JSON
import uuid

from worktrack.models.base import utcnow_iso
from worktrack.models.link import Link


class ClientBase(SQLModel):
    """
    Editable client fields.

    Attributes:
        company: Company/organization name (required)
        contact_name: Primary contact person
        email: Contact email address
        phone: Contact phone, stored formatted as NNN-NNN-NNNN
        address: Postal address
        website: Company website URL
        notes: Free-form notes
    """
    company: str = Field(nullable=False)
    contact_name: Optional[str] = ""
    email: Optional[str] = ""
    phone: Optional[str] = ""
    address: Optional[str] = ""
    website: Optional[str] = ""
    notes: Optional[str] = ""


class Client(ClientBase, table=True):
    """
    Client table model.
    """
    __tablename__ = "clients"

    # Primary key - auto-generated UUID for global uniqueness
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)

    # Embedded links stored as a JSON array of Link dicts
    links: List[dict] = Field(default_factory=list, sa_column=Column(JSON))

    created_by: Optional[str] = Field(default=None, foreign_key="profiles.id")

    # Audit timestamps
    created_at: Optional[str] = Field(default_factory=utcnow_iso)
    updated_at: Optional[str] = Field(default_factory=utcnow_iso)


class ClientCreate(ClientBase):
    """Schema for creating a client."""
    pass


class ClientUpdate(SQLModel):
    """Schema for updating a client; only supplied fields change."""
    company: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None


class ClientRead(ClientBase):
    """Schema for reading a client."""
    id: str
    links: List[Link] = []
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

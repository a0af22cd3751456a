"""
Link Sub-record Module

Links are embedded in Requests and Clients as a JSON array. They have no table
of their own and no lifecycle beyond "added" and "deleted".
"""
from typing import Optional
from sqlmodel import SQLModel


class Link(SQLModel):
    """
    One annotated URL.

    Attributes:
        id: Opaque identifier, unique within its parent
        name: Display label (required)
        url: Absolute URL (required)
        comments: Optional free-text annotation
        created_at: ISO timestamp when the link was added
    """
    id: str
    name: str
    url: str
    comments: Optional[str] = ""
    created_at: str


class LinkCreate(SQLModel):
    """Schema for adding a link."""
    name: str
    url: str
    comments: Optional[str] = ""

"""
Comment Model Module

Comments are attached to a request by reference and never edited. The
autoincrement id records creation order.
"""
from typing import Optional
from sqlmodel import SQLModel, Field

from worktrack.models.base import utcnow_iso


class RequestComment(SQLModel, table=True):
    """
    Comment table model.

    Attributes:
        id: Auto-incrementing primary key (creation order)
        request_id: The request this comment belongs to
        author_id: Profile that wrote the comment
        author_name: Copy of the author's full_name at creation time
        text: Comment body
        created_at: ISO timestamp when the comment was added
    """
    __tablename__ = "request_comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    request_id: str = Field(foreign_key="requests.id", index=True, nullable=False)
    author_id: str = Field(foreign_key="profiles.id", nullable=False)
    author_name: str = ""
    text: str = Field(nullable=False)
    created_at: Optional[str] = Field(default_factory=utcnow_iso)


class CommentCreate(SQLModel):
    text: str

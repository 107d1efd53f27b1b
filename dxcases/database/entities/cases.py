"""
Case ORM Model
==============

The ``Case`` model represents one published DX failure story stored in the
``cases`` table. Rows are built from the conversation data at confirmation
time; the conversation data itself is never stored.
"""

from dxcases.database.config.connection_engine import declarativeBase
from sqlalchemy import DateTime, TEXT, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional
from uuid import UUID, uuid4
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Case(declarativeBase):
    """
    ORM model for the `cases` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    title : str | None
        Generated (or admin-edited) title.
    summary : str | None
        Paragraph shown in the gallery; the paragraph summary when one exists.
    tags : str
        JSON-encoded list of tag strings.
    image_url : str | None
        URL of the generated illustration.
    when, location, who, impact, cause, suggestions : str | None
        Story fields extracted during the conversation.
    conversation : str | None
        JSON-encoded transcript kept as an audit trail.
    paragraph_summary : str | None
        AI-written paragraph over the whole transcript.
    created_at, updated_at : datetime
        UTC timestamps.
    """

    __tablename__ = 'cases'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    title: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    summary: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    tags: Mapped[str] = mapped_column(TEXT, nullable=False, default="[]")
    image_url: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    when: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    who: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    impact: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    cause: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    suggestions: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    conversation: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    paragraph_summary: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __str__(self) -> str:
        return f"Case: id:{self.id}, title: {self.title}, time_created: {self.created_at}"

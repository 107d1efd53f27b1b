"""
ModerationLog ORM Model
=======================

Audit record for a submission the content-safety classifier flagged. Exactly
one row is written per rejected submission; no `cases` row accompanies it.
"""

from dxcases.database.config.connection_engine import declarativeBase
from dxcases.database.entities.cases import utcnow
from sqlalchemy import DateTime, TEXT, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID, uuid4
from datetime import datetime


class ModerationLog(declarativeBase):
    """
    ORM model for the `moderation_logs` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    content : str
        The text that was sent to the classifier.
    moderation_result : str
        JSON-encoded classifier output (flagged, categories, category_scores).
    created_at : datetime
        UTC timestamp of the rejection.
    """

    __tablename__ = 'moderation_logs'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    content: Mapped[str] = mapped_column(TEXT, nullable=False)
    moderation_result: Mapped[str] = mapped_column(TEXT, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    def __str__(self) -> str:
        return f"ModerationLog: id:{self.id}, time_created: {self.created_at}"

"""
Reaction model for tracking which users reacted to a comment, and how.

Reference: https://docs.sqlalchemy.org/en/20/orm/declarative_tables.html
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from comment_reactions.core.database import Base

REACTION_TYPE_MAX_LENGTH = 64


class Reaction(Base):
    """
    Represents one user's reaction of a given type on a comment of a published view.

    created_by is a plain column rather than a foreign key: users are owned by the
    user directory and may disappear while their reactions remain stored.
    """

    __tablename__ = "reactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    view_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        comment="Published view the comment belongs to",
    )

    comment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        comment="Comment that was reacted to",
    )

    reaction_type: Mapped[str] = mapped_column(
        String(REACTION_TYPE_MAX_LENGTH),
        nullable=False,
        comment="Free-form reaction label, e.g. an emoji",
    )

    created_by: Mapped[str] = mapped_column(
        String,
        nullable=False,
        comment="User directory ID of the reacting user",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Timestamp when the reaction was added",
    )

    __table_args__ = (
        Index("ix_reactions_comment_id", "comment_id"),
        Index("ix_reactions_view_comment", "view_id", "comment_id"),
        UniqueConstraint(
            "view_id",
            "comment_id",
            "reaction_type",
            "created_by",
            name="uq_reactions_view_comment_type_user",
        ),
        {"comment": "Comment reactions - one row per user reaction"},
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Reaction(id={self.id}, comment_id={self.comment_id}, "
            f"reaction_type='{self.reaction_type}', created_by={self.created_by})>"
        )

"""
Schemas for per-comment reaction rollups.

Reference: https://docs.pydantic.dev/latest/concepts/models/
"""

import uuid
from datetime import datetime
from typing import List

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


class ReactingUser(BaseModel):
    """A user who applied a reaction."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="User directory ID")
    name: str = Field(..., description="Display name of the user")


class ReactionTypeSummary(BaseModel):
    """
    Rollup of one reaction type on a comment.

    Attributes:
        reaction_type: The reaction label
        first_reaction_at: Creation time of the earliest reaction of this type
        users: One entry per reaction of this type, duplicates kept
    """

    reaction_type: str = Field(..., description="Reaction label, e.g. an emoji")
    first_reaction_at: AwareDatetime = Field(
        ..., description="Timestamp of the earliest reaction of this type"
    )
    users: List[ReactingUser] = Field(
        default_factory=list,
        description="Users who reacted with this type, one entry per reaction",
    )


class CommentReactionSummary(ReactionTypeSummary):
    """Rollup of one reaction type on one comment of a published view."""

    comment_id: uuid.UUID = Field(..., description="Comment the reactions belong to")

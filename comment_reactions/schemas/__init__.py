"""
Pydantic schemas for reaction rollups
"""

from comment_reactions.schemas.reaction import (
    CommentReactionSummary,
    ReactingUser,
    ReactionTypeSummary,
)

__all__ = ["CommentReactionSummary", "ReactingUser", "ReactionTypeSummary"]

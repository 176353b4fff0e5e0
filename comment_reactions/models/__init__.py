"""
Database models
All SQLAlchemy models should be defined here or imported here
"""

from comment_reactions.core.database import Base
from comment_reactions.models.reaction import Reaction
from comment_reactions.models.user import User

__all__ = [
    "Base",
    "Reaction",
    "User",
]

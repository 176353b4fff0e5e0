from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from comment_reactions.core.database import Base


class User(Base):
    """
    User directory entry referenced by reactions

    The directory is owned by another component; reactions only read
    the id and display name.

    Attributes:
        id: Primary key, external user ID
        name: Display name shown next to a reaction
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)

    def __repr__(self) -> str:
        """String representation of user"""
        return f"<User(id={self.id}, name='{self.name}')>"

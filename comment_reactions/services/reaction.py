"""
Reaction service for reading and writing comment reactions.

Reads return one summary per reaction type: the time that type first appeared
and every user who applied it, ordered by first appearance.

Reference: https://docs.sqlalchemy.org/en/20/orm/queryguide/select.html#joins
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, Hashable, List, NamedTuple, Optional, Sequence

from sqlalchemy import Select, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from comment_reactions.core.exceptions import (
    DataAccessError,
    InvalidReactionTypeError,
    UnknownUserError,
)
from comment_reactions.models.reaction import REACTION_TYPE_MAX_LENGTH, Reaction
from comment_reactions.models.user import User
from comment_reactions.schemas.reaction import (
    CommentReactionSummary,
    ReactingUser,
    ReactionTypeSummary,
)

logger = logging.getLogger(__name__)


class ReactionRow(NamedTuple):
    """One reaction joined with its author, before grouping."""

    comment_id: uuid.UUID
    reaction_type: str
    created_at: datetime
    user: ReactingUser


class ReactionGroup(NamedTuple):
    key: Hashable
    first_reaction_at: datetime
    users: List[ReactingUser]


def decode_row(row: Sequence) -> ReactionRow:
    """
    Check a joined row against the column contract and convert it.

    SQLite hands back timezone-naive timestamps; those are stored as UTC.

    Raises:
        DataAccessError: If a non-null column is null or the timestamp is not a datetime
    """
    comment_id, reaction_type, created_at, user_id, user_name = row
    if None in (comment_id, reaction_type, created_at, user_id, user_name):
        raise DataAccessError(f"Unexpected null column in reaction row: {tuple(row)!r}")
    if not isinstance(created_at, datetime):
        raise DataAccessError(f"Malformed reaction timestamp: {created_at!r}")
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return ReactionRow(
        comment_id=comment_id,
        reaction_type=reaction_type,
        created_at=created_at,
        user=ReactingUser(id=user_id, name=user_name),
    )


def group_rows(
    rows: Sequence[ReactionRow], key: Callable[[ReactionRow], Hashable]
) -> List[ReactionGroup]:
    """
    Group rows by key and order the groups by their earliest reaction.

    Users keep the order the rows arrived in and are never deduplicated.
    Groups with the same first timestamp keep the order they were first seen.
    """
    partitions: Dict[Hashable, List[ReactionRow]] = {}
    for row in rows:
        partitions.setdefault(key(row), []).append(row)

    groups = []
    for group_key, members in partitions.items():
        first_reaction_at = min(member.created_at for member in members)
        users = [member.user for member in members]
        groups.append(ReactionGroup(group_key, first_reaction_at, users))

    groups.sort(key=lambda group: group.first_reaction_at)
    return groups


def normalize_reaction_type(reaction_type: str) -> str:
    """Strip a reaction label and check its length."""
    reaction_type = reaction_type.strip()
    if not reaction_type:
        raise InvalidReactionTypeError()
    if len(reaction_type) > REACTION_TYPE_MAX_LENGTH:
        raise InvalidReactionTypeError(
            f"Reaction type must be at most {REACTION_TYPE_MAX_LENGTH} characters"
        )
    return reaction_type


async def rollback_quietly(db: AsyncSession) -> None:
    """
    Roll back after a failed statement without masking the failure.

    A dead connection makes the rollback itself raise; that error is logged only.
    """
    try:
        await db.rollback()
    except Exception as e:
        logger.warning(f"Rollback failed: {e}")


class ReactionService:
    """Service for comment reactions. Holds no state; one instance can serve concurrent callers."""

    def _joined_rows_query(self) -> Select:
        # Inner join: reactions whose author left the user directory are dropped
        return (
            select(
                Reaction.comment_id,
                Reaction.reaction_type,
                Reaction.created_at,
                User.id,
                User.name,
            )
            .join(User, Reaction.created_by == User.id)
            .order_by(Reaction.id)
        )

    async def _fetch_rows(self, db: AsyncSession, query: Select) -> List[ReactionRow]:
        try:
            result = await db.execute(query)
            raw_rows = result.all()
        except (SQLAlchemyError, OSError, ValueError) as e:
            logger.error(f"Failed to read reactions: {e}", exc_info=True)
            raise DataAccessError(f"Failed to read reactions: {e}") from e

        try:
            return [decode_row(row) for row in raw_rows]
        except DataAccessError as e:
            logger.error(f"Failed to decode reaction row: {e.message}")
            raise

    async def list_reaction_summaries(
        self, db: AsyncSession, comment_id: uuid.UUID
    ) -> List[ReactionTypeSummary]:
        """
        Summarize the reactions on a comment, one entry per reaction type.

        The comment is not checked for existence: an unknown comment or one
        without reactions yields an empty list.

        Args:
            db: Database session
            comment_id: Comment to summarize

        Returns:
            Summaries sorted by first_reaction_at, ascending

        Raises:
            DataAccessError: If the reactions cannot be read or decoded
        """
        query = self._joined_rows_query().where(Reaction.comment_id == comment_id)
        rows = await self._fetch_rows(db, query)

        groups = group_rows(rows, key=lambda row: row.reaction_type)
        logger.debug(
            f"Comment {comment_id}: {len(rows)} reactions in {len(groups)} types"
        )
        return [
            ReactionTypeSummary(
                reaction_type=group.key,
                first_reaction_at=group.first_reaction_at,
                users=group.users,
            )
            for group in groups
        ]

    async def list_view_reactions(
        self,
        db: AsyncSession,
        view_id: uuid.UUID,
        comment_id: Optional[uuid.UUID] = None,
    ) -> List[CommentReactionSummary]:
        """
        Summarize the reactions on every comment of a published view.

        Args:
            db: Database session
            view_id: Published view whose comments are summarized
            comment_id: Optional filter to a single comment of the view

        Returns:
            One summary per (comment, reaction type), sorted by first_reaction_at

        Raises:
            DataAccessError: If the reactions cannot be read or decoded
        """
        query = self._joined_rows_query().where(Reaction.view_id == view_id)
        if comment_id is not None:
            query = query.where(Reaction.comment_id == comment_id)
        rows = await self._fetch_rows(db, query)

        groups = group_rows(rows, key=lambda row: (row.comment_id, row.reaction_type))
        summaries = []
        for group in groups:
            group_comment_id, reaction_type = group.key
            summaries.append(
                CommentReactionSummary(
                    comment_id=group_comment_id,
                    reaction_type=reaction_type,
                    first_reaction_at=group.first_reaction_at,
                    users=group.users,
                )
            )
        return summaries

    async def _find_reaction(
        self,
        db: AsyncSession,
        view_id: uuid.UUID,
        comment_id: uuid.UUID,
        reaction_type: str,
        user_id: str,
    ) -> Optional[Reaction]:
        result = await db.execute(
            select(Reaction).where(
                Reaction.view_id == view_id,
                Reaction.comment_id == comment_id,
                Reaction.reaction_type == reaction_type,
                Reaction.created_by == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def add_reaction(
        self,
        db: AsyncSession,
        view_id: uuid.UUID,
        comment_id: uuid.UUID,
        reaction_type: str,
        user_id: str,
    ) -> Reaction:
        """
        Add a user's reaction to a comment.

        Reacting twice with the same type is a no-op, also when two callers race:
        the loser's insert hits uq_reactions_view_comment_type_user, its session is
        rolled back and the stored row is returned.

        Args:
            db: Database session
            view_id: Published view the comment belongs to
            comment_id: Comment to react to
            reaction_type: Reaction label, surrounding whitespace is stripped
            user_id: Reacting user

        Returns:
            The new reaction, or the existing one if the user already reacted with this type

        Raises:
            InvalidReactionTypeError: If the reaction type is empty or too long
            UnknownUserError: If the user is not in the user directory
            DataAccessError: If the store cannot be read or written
        """
        reaction_type = normalize_reaction_type(reaction_type)

        try:
            user_result = await db.execute(select(User.id).where(User.id == user_id))
            if user_result.scalar_one_or_none() is None:
                raise UnknownUserError(user_id)

            existing = await self._find_reaction(
                db, view_id, comment_id, reaction_type, user_id
            )
            if existing:
                logger.debug(
                    f"User {user_id} already reacted {reaction_type} on comment {comment_id}"
                )
                return existing

            reaction = Reaction(
                view_id=view_id,
                comment_id=comment_id,
                reaction_type=reaction_type,
                created_by=user_id,
            )
            db.add(reaction)
            try:
                await db.flush()
            except IntegrityError as e:
                await rollback_quietly(db)
                existing = await self._find_reaction(
                    db, view_id, comment_id, reaction_type, user_id
                )
                if existing is None:
                    raise
                logger.debug(
                    f"Concurrent {reaction_type} reaction by user {user_id} on comment "
                    f"{comment_id} already stored: {e.orig}"
                )
                return existing
            await db.refresh(reaction)  # Refresh to get created_at
        except SQLAlchemyError as e:
            await rollback_quietly(db)
            logger.error(f"Failed to add reaction: {e}", exc_info=True)
            raise DataAccessError("Failed to add reaction") from e

        logger.info(f"User {user_id} reacted {reaction_type} on comment {comment_id}")
        return reaction

    async def remove_reaction(
        self,
        db: AsyncSession,
        view_id: uuid.UUID,
        comment_id: uuid.UUID,
        reaction_type: str,
        user_id: str,
    ) -> bool:
        """
        Remove a user's reaction of a given type from a comment.

        Returns:
            True if a reaction was removed, False if the user had not reacted

        Raises:
            DataAccessError: If the store cannot be written
        """
        reaction_type = reaction_type.strip()
        try:
            result = await db.execute(
                delete(Reaction).where(
                    Reaction.view_id == view_id,
                    Reaction.comment_id == comment_id,
                    Reaction.reaction_type == reaction_type,
                    Reaction.created_by == user_id,
                )
            )
            await db.flush()
        except SQLAlchemyError as e:
            await rollback_quietly(db)
            logger.error(f"Failed to remove reaction: {e}", exc_info=True)
            raise DataAccessError("Failed to remove reaction") from e

        if not result.rowcount:
            logger.debug(
                f"User {user_id} has no {reaction_type} reaction on comment {comment_id}"
            )
            return False

        logger.info(f"User {user_id} removed {reaction_type} from comment {comment_id}")
        return True

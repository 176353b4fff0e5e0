import os
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio

project_root = Path(__file__).resolve().parents[1]

# Configure the package to use a local SQLite database during tests
_test_db_path = project_root / "test.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_db_path.as_posix()}"
os.environ["SQL_ECHO"] = "false"

# Start each test session from a clean database file
if _test_db_path.exists():
    _test_db_path.unlink()

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def at(seconds: int) -> datetime:
    """A UTC timestamp `seconds` after BASE_TIME."""
    return BASE_TIME + timedelta(seconds=seconds)


@pytest.fixture(scope="session", autouse=True)
def remove_test_database():
    yield
    if _test_db_path.exists():
        _test_db_path.unlink()


@pytest_asyncio.fixture
async def setup_database():
    """Create all tables for one test and drop them afterwards."""
    from comment_reactions.core.database import create_tables, drop_tables

    await create_tables()
    yield
    await drop_tables()


@pytest_asyncio.fixture
async def db_session(setup_database):
    """Provide an async database session to tests that need direct access."""
    from comment_reactions.core.database import async_session_maker

    async with async_session_maker() as session:
        yield session


@pytest.fixture
def service():
    from comment_reactions.services.reaction import ReactionService

    return ReactionService()


@pytest.fixture
def view_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def comment_id() -> uuid.UUID:
    return uuid.uuid4()


async def add_user(session, user_id: str, name: str | None = None) -> None:
    from comment_reactions.models import User

    session.add(User(id=user_id, name=name or user_id.upper()))
    await session.commit()


async def add_reaction_row(
    session,
    comment_id: uuid.UUID,
    reaction_type: str,
    created_by: str,
    created_at: datetime,
    view_id: uuid.UUID | None = None,
) -> None:
    """Insert a reaction row directly, bypassing the service's uniqueness check."""
    from comment_reactions.models import Reaction

    session.add(
        Reaction(
            view_id=view_id or uuid.uuid4(),
            comment_id=comment_id,
            reaction_type=reaction_type,
            created_by=created_by,
            created_at=created_at,
        )
    )
    await session.commit()


class StubResult:
    def __init__(self, rows):
        self._rows = rows

    def all(self):
        return self._rows


class StubSession:
    """
    Stands in for AsyncSession: execute returns fixed rows or raises `error`,
    rollback raises `rollback_error` when given
    """

    def __init__(self, rows=None, error=None, rollback_error=None):
        self.rows = rows or []
        self.error = error
        self.rollback_error = rollback_error
        self.rollbacks = 0

    async def execute(self, query):
        if self.error is not None:
            raise self.error
        return StubResult(self.rows)

    def add(self, instance):
        pass

    async def flush(self):
        pass

    async def rollback(self):
        self.rollbacks += 1
        if self.rollback_error is not None:
            raise self.rollback_error

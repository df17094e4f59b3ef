"""Root conftest — environment pinning plus DB, broadcaster, scheduler and entity fixtures.

Invariants:
    - Every test gets a fresh SQLite database file under tmp_path
    - db_manager patched so code that opens its own sessions (settlement) hits the test DB
    - Scheduler fixtures are shut down after each test (no task outlives its loop)

Design Decisions:
    - File-backed SQLite instead of :memory: — aiosqlite's in-memory database is one
      shared connection, so a settlement session and a request session would share
      a transaction; separate connections keep them isolated
    - Short settlement delay: tests await scheduler.wait_idle() instead of sleeping
"""

import os

# Settings are read once (lru_cache); pin them before any crowdchain import
os.environ.setdefault("CROWDCHAIN_DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("CROWDCHAIN_TOKEN_SECRET", "test-token-secret")
os.environ.setdefault("CROWDCHAIN_LOG_FORMAT", "text")

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from crowdchain.config import get_settings
from crowdchain.core.domain_types import Role, SettlementPolicy
from crowdchain.core.passwords import hash_password
from crowdchain.core.tokens import issue_token
from crowdchain.db.base import Base
from crowdchain.infrastructure.database import DatabaseSessionManager
import crowdchain.infrastructure.database as db_module
from crowdchain.models.auth_session import AuthSession
from crowdchain.models.project import Project
from crowdchain.models.user import User
from crowdchain.services.broadcaster import NotificationBroadcaster
from crowdchain.services.settlement import SettlementScheduler

@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'crowdchain.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def fake_db_manager(test_engine, test_session_factory):
    """Point the db_manager singleton at the test database."""
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager
    yield fake_manager
    db_module.db_manager = original_manager


@pytest.fixture
def broadcaster():
    return NotificationBroadcaster(queue_size=100)


def _make_scheduler(broadcaster, manager, policy) -> SettlementScheduler:
    return SettlementScheduler(
        broadcaster,
        delay_seconds=0.01,
        policy=policy,
        session_scope=manager.session,
    )


@pytest.fixture
async def scheduler(broadcaster, fake_db_manager):
    sched = _make_scheduler(broadcaster, fake_db_manager, SettlementPolicy.RESERVED)
    yield sched
    await sched.shutdown()


@pytest.fixture
async def optimistic_scheduler(broadcaster, fake_db_manager):
    sched = _make_scheduler(broadcaster, fake_db_manager, SettlementPolicy.OPTIMISTIC)
    yield sched
    await sched.shutdown()


# -- Entity factories ----------------------------------------------------------

@pytest.fixture
def make_user(test_db):
    counter = {"n": 0}

    async def _make(
        role: Role = Role.INVESTOR,
        balance: str = "1000.00",
        is_approved: bool = True,
        is_banned: bool = False,
        password: str = "correct-horse",
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            username=f"{role.value}{n}",
            email=f"{role.value}{n}@example.com",
            password_hash=hash_password(password, iterations=1_000),
            role=role.value,
            balance=Decimal(balance),
            reward_points=100,
            is_approved=is_approved,
            is_banned=is_banned,
        )
        test_db.add(user)
        await test_db.commit()
        return user

    return _make


@pytest.fixture
def make_project(test_db, make_user):
    async def _make(
        goal: str = "1000.00",
        current: str = "0.00",
        is_approved: bool = True,
        is_active: bool = True,
        creator: User | None = None,
    ) -> Project:
        creator = creator or await make_user(role=Role.CREATOR)
        project = Project(
            creator_id=creator.id,
            title="Solar Microgrid",
            description="Community-owned solar for twelve villages",
            category="energy",
            goal_amount=Decimal(goal),
            current_amount=Decimal(current),
            is_approved=is_approved,
            is_active=is_active,
            end_date=datetime.now(timezone.utc) + timedelta(days=30),
        )
        test_db.add(project)
        await test_db.commit()
        return project

    return _make


@pytest.fixture
def login(test_db):
    """Open a live session for user; returns Authorization headers."""
    async def _login(user: User) -> dict[str, str]:
        expires_at = datetime.now(timezone.utc) + timedelta(days=1)
        token = issue_token(user.id, expires_at, get_settings().token_secret)
        test_db.add(AuthSession(user_id=user.id, token=token, expires_at=expires_at))
        await test_db.commit()
        return {"Authorization": f"Bearer {token}"}

    return _login

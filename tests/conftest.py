"""
Pytest fixtures for Journal Press tests.

Every test gets its own SQLite file so savepoints, foreign keys and
ON DELETE actions behave as in production.
"""

import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

# Settings are read on import; point them at SQLite before anything loads src
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_bootstrap.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("CSRF_SECRET", "test-csrf-secret")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.config import get_settings
from src.database import build_engine, get_db
from src.kernel.issues.cover_images import PublicFileManager
from src.kernel.models import (
    Base,
    Issue,
    Journal,
    JournalRoleType,
    Publication,
    PublishingMode,
    Submission,
    SubmissionStatus,
    User,
    UserRole,
)
from src.kernel.permissions.permission_service import PermissionService
from src.kernel.security.csrf import CSRF_HEADER, generate_csrf_token
from src.orchestration.hooks import LifecycleHooks


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a test database engine on a fresh SQLite file."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'journal_press.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine) -> async_sessionmaker:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def hooks() -> LifecycleHooks:
    """An empty hook registry per test."""
    return LifecycleHooks()


@pytest.fixture
def file_manager(tmp_path) -> PublicFileManager:
    return PublicFileManager(tmp_path / "public")


# Data fixtures


@pytest_asyncio.fixture
async def journal(db_session: AsyncSession) -> Journal:
    """An open access journal."""
    journal = Journal(
        id=uuid.uuid4(),
        path="jtest",
        name="Journal of Testing",
        publishing_mode=PublishingMode.OPEN,
        delayed_open_access_duration=0,
    )
    db_session.add(journal)
    await db_session.commit()
    return journal


@pytest_asyncio.fixture
async def other_journal(db_session: AsyncSession) -> Journal:
    journal = Journal(id=uuid.uuid4(), path="jother", name="Other Journal")
    db_session.add(journal)
    await db_session.commit()
    return journal


async def create_user(
    session: AsyncSession,
    email: str,
    journal: Optional[Journal] = None,
    journal_role: Optional[JournalRoleType] = None,
    role: UserRole = UserRole.USER,
    is_active: bool = True,
) -> User:
    user = User(id=uuid.uuid4(), email=email, full_name=email.split("@")[0], role=role, is_active=is_active)
    session.add(user)
    await session.flush()
    if journal is not None and journal_role is not None:
        await PermissionService(session).grant_role(user.id, journal.id, journal_role)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def manager(db_session: AsyncSession, journal: Journal) -> User:
    """A journal manager."""
    return await create_user(db_session, "manager@example.com", journal, JournalRoleType.MANAGER)


@pytest_asyncio.fixture
async def reader(db_session: AsyncSession, journal: Journal) -> User:
    return await create_user(db_session, "reader@example.com", journal, JournalRoleType.READER)


async def create_issue(session: AsyncSession, journal: Journal, **fields) -> Issue:
    fields.setdefault("volume", 1)
    fields.setdefault("number", "1")
    fields.setdefault("year", 2026)
    issue = Issue(id=uuid.uuid4(), journal_id=journal.id, **fields)
    session.add(issue)
    await session.commit()
    return issue


async def create_submission(
    session: AsyncSession,
    journal: Journal,
    issue: Optional[Issue] = None,
    status: SubmissionStatus = SubmissionStatus.SCHEDULED,
    publication_statuses=(SubmissionStatus.SCHEDULED,),
    title: str = "A Study of Things",
) -> Submission:
    """A submission with one publication per status, all assigned to ``issue``."""
    publications = [
        Publication(
            id=uuid.uuid4(),
            version=version,
            title=title,
            status=pub_status,
            issue_id=issue.id if issue is not None else None,
            seq=version,
        )
        for version, pub_status in enumerate(publication_statuses, start=1)
    ]
    submission = Submission(
        id=uuid.uuid4(),
        journal_id=journal.id,
        title=title,
        status=status,
        publications=publications,
    )
    session.add(submission)
    await session.commit()
    return submission


def make_token(user: User, expires_in: timedelta = timedelta(minutes=30), token_type: str = "access") -> str:
    """Bearer token as the hosting platform would issue it."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "iat": now,
        "exp": now + expires_in,
        "jti": str(uuid.uuid4()),
        "type": token_type,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def auth_headers(user: User, journal: Optional[Journal] = None) -> dict:
    """Authorization header, plus the anti-forgery header when a journal is given."""
    headers = {"Authorization": f"Bearer {make_token(user)}"}
    if journal is not None:
        headers[CSRF_HEADER] = generate_csrf_token(user.id, journal.id)
    return headers


@pytest_asyncio.fixture
async def client(session_maker, hooks, file_manager) -> AsyncGenerator[AsyncClient, None]:
    """Async client against the app with the test database, hooks and public files."""
    from src.api.deps import get_file_manager, get_lifecycle_hooks
    from src.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lifecycle_hooks] = lambda: hooks
    app.dependency_overrides[get_file_manager] = lambda: file_manager
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()

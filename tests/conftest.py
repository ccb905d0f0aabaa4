import os
import shutil

os.environ["MODE"] = "test"

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from httpx import AsyncClient, ASGITransport

from main import app as fastapi_app
import db as project_db
import db_models  # ensure models are imported
from db_models.user import User
from config import settings
from core.notifications import Notifier, get_notifier
from core.security import get_password_hash, create_access_token
from core.uploads import UPLOAD_DIR

TEST_DATABASE_URL = settings.DATABASE_URL


def get_sync_url(url: str) -> str:
    if url.startswith("sqlite+aiosqlite"):
        return url.replace("sqlite+aiosqlite", "sqlite")
    if url.startswith("postgresql+asyncpg"):
        return url.replace("postgresql+asyncpg", "postgresql+psycopg2")
    return url

sync_url = get_sync_url(TEST_DATABASE_URL)

# Use an async engine for app interactions
engine = create_async_engine(
    TEST_DATABASE_URL,
    future=True,
    echo=False,
    poolclass=NullPool  # Disable connection pooling for tests
)
AsyncSessionTest = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False
)


class RecordingNotifier(Notifier):
    """Captures outgoing mail instead of sending it."""

    def __init__(self):
        super().__init__(None, enabled=False)
        self.sent = []

    async def send(self, recipient: str, subject: str, body: str) -> bool:
        self.sent.append({"to": recipient, "subject": subject, "body": body})
        return True

    def subjects_for(self, recipient: str) -> list[str]:
        return [m["subject"] for m in self.sent if m["to"] == recipient]


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"

@pytest.fixture(scope="session", autouse=True)
def prepare_db():
    # Create/drop tables for tests (Destructive - use a dedicated test DB)
    from db_base import Base
    from sqlalchemy import create_engine

    sync_engine = create_engine(sync_url)
    Base.metadata.drop_all(bind=sync_engine)
    Base.metadata.create_all(bind=sync_engine)
    yield
    Base.metadata.drop_all(bind=sync_engine)
    sync_engine.dispose()
    shutil.rmtree(UPLOAD_DIR, ignore_errors=True)

@pytest.fixture(scope="session", autouse=True)
def seed_users(prepare_db):
    """Seed the admin and two citizens every test can rely on (ids 1, 2, 3)."""
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker

    sync_engine = create_engine(sync_url)
    Session = sessionmaker(bind=sync_engine)

    with Session() as session:
        admin_user = User(
            email="admin@test.com",
            hashed_password=get_password_hash("adminpass"),
            first_name="Test",
            last_name="Admin",
            role="admin",
            active=True,
        )
        citizen_user = User(
            email="citizen@test.com",
            hashed_password=get_password_hash("citizenpass"),
            first_name="Test",
            last_name="Citizen",
            role="user",
            active=True,
        )
        other_user = User(
            email="other@test.com",
            hashed_password=get_password_hash("otherpass"),
            first_name="Other",
            last_name="Citizen",
            role="user",
            active=True,
        )
        session.add_all([admin_user, citizen_user, other_user])
        session.commit()
        print(f"Created test users: admin (id={admin_user.id}), citizen (id={citizen_user.id}), other (id={other_user.id})")
    sync_engine.dispose()

@pytest.fixture
async def db_session():
    async with AsyncSessionTest() as session:
        yield session
        await session.rollback()

@pytest.fixture
def notifier():
    return RecordingNotifier()

@pytest.fixture
async def async_client(notifier):
    # Override the get_session dependency to create a fresh session for each request
    async def override_get_session():
        async with AsyncSessionTest() as session:
            yield session

    fastapi_app.dependency_overrides[project_db.get_session] = override_get_session
    fastapi_app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://testserver") as ac:
        yield ac

    # Clean up
    fastapi_app.dependency_overrides.clear()


@pytest.fixture(scope="session")
def admin_token():
    """Generate an admin JWT token for tests."""
    return create_access_token(data={"sub": "1"})


@pytest.fixture(scope="session")
def citizen_token():
    """Generate a citizen JWT token for tests."""
    return create_access_token(data={"sub": "2"})


@pytest.fixture(scope="session")
def other_token():
    """Generate a token for the second citizen."""
    return create_access_token(data={"sub": "3"})


@pytest.fixture(scope="session")
def admin_headers(admin_token):
    """Return authorization headers for admin user."""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture(scope="session")
def citizen_headers(citizen_token):
    """Return authorization headers for citizen user."""
    return {"Authorization": f"Bearer {citizen_token}"}


@pytest.fixture(scope="session")
def other_headers(other_token):
    """Return authorization headers for the second citizen."""
    return {"Authorization": f"Bearer {other_token}"}

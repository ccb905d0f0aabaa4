import pytest
from sqlalchemy import select

import db as project_db
from db_models.user import User


@pytest.mark.anyio
async def test_get_session_reads_seeded_users():
    sessions = project_db.get_session()
    session = await anext(sessions)
    try:
        result = await session.execute(select(User).where(User.email == "admin@test.com"))
        admin = result.scalar_one()
        assert admin.role == "admin"
    finally:
        await sessions.aclose()
        await project_db.dispose_db()


@pytest.mark.anyio
async def test_init_db_is_idempotent():
    # Tables already exist from the session fixture
    await project_db.init_db()
    async with project_db.AsyncSessionLocal() as session:
        result = await session.execute(select(User.id).order_by(User.id).limit(1))
        assert result.scalar_one() == 1
    await project_db.dispose_db()

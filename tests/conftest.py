import asyncio
import os
import tempfile
from collections import namedtuple

import pytest

# settings are read at import time, point them at a scratch directory first
_TMP = tempfile.mkdtemp(prefix="wholesale-orders-tests-")
APP_DB_PATH = os.path.join(_TMP, "app.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{APP_DB_PATH}"
os.environ["LOG_DIR"] = os.path.join(_TMP, "log")
os.environ["LOG_PRINT"] = "0"
os.environ["AUTH_SECRET_KEY"] = "test-secret"

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from wholesale_orders.models.enums import UserRole  # noqa: E402
from wholesale_orders.utils.database import init_db  # noqa: E402
from wholesale_orders.utils.log import Log  # noqa: E402

Actor = namedtuple("Actor", "id role")

ADMIN = Actor(1, UserRole.ADMIN)
SUPER_ADMIN = Actor(2, UserRole.SUPER_ADMIN)
SELLER = Actor(10, UserRole.SALES)
OTHER_SELLER = Actor(11, UserRole.SALES)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}", poolclass=NullPool)
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await init_db(bind=engine, session_factory=factory)
    yield factory
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def log(tmp_path):
    log = Log(log_dir=str(tmp_path / "log"))
    yield log
    await log.shutdown()


# ────────────── HTTP ──────────────
def add_user(login, password, role):
    from wholesale_orders.models.user import User
    from wholesale_orders.utils.database import AsyncSessionLocal
    from wholesale_orders.utils.security import hash_password

    async def _add():
        async with AsyncSessionLocal() as session:
            user = User(name=login, login=login, password=hash_password(password), role=role)
            session.add(user)
            await session.commit()
            return user.id

    return asyncio.run(_add())


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from wholesale_orders.main import app

    if os.path.exists(APP_DB_PATH):
        os.remove(APP_DB_PATH)
    with TestClient(app) as c:
        yield c


def auth_headers(client, login, password):
    r = client.post("/auth/token", data={"username": login, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker  # noqa: E402

from fragmento.core.security import create_access_token, get_password_hash  # noqa: E402
from fragmento.db.base import Base  # noqa: E402
from fragmento.db.session import build_engine, get_db  # noqa: E402
from fragmento.main import app  # noqa: E402
from fragmento.models.user import User  # noqa: E402
from fragmento.services import post_service  # noqa: E402

TEST_PASSWORD = "Sillage#2024"


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """A session on a fresh in-memory database."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def password_hash() -> str:
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def make_user(db: AsyncSession, password_hash: str) -> Callable[[str], Awaitable[User]]:
    async def _make_user(username: str) -> User:
        user = User(username=username, email=f"{username}@example.com", password_hash=password_hash)
        db.add(user)
        await db.flush()
        return user

    return _make_user


@pytest_asyncio.fixture
async def alice(make_user) -> User:
    return await make_user("alice")


@pytest_asyncio.fixture
async def bob(make_user) -> User:
    return await make_user("bob")


@pytest_asyncio.fixture
async def carol(make_user) -> User:
    return await make_user("carol")


@pytest_asyncio.fixture
async def post(db: AsyncSession, alice: User):
    """A post by alice."""
    return await post_service.create_post(
        db,
        alice.id,
        {"name": "Aventus", "brand": "Creed", "notes": [{"name": "Pineapple", "category": "top"}]},
    )


@pytest_asyncio.fixture
async def client(session_maker) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    def _auth_headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers

"""Pytest configuration and fixtures for backend tests.

Database Handling:
- Each test gets its own SQLite database file (aiosqlite) with all tables created
- Request handlers get a fresh session per request, like production
- The db_session fixture is a separate session for arranging and inspecting rows
"""

import os
import tempfile
from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Set test environment variables before importing app modules
_TEST_DIR = tempfile.mkdtemp(prefix="inkwell-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/app.db"
os.environ["JWT_SECRET_KEY"] = "0123456789abcdef" * 4  # 64 chars
# Cheap Argon2 parameters keep the suite fast
os.environ["PASSWORD_HASH_TIME_COST"] = "1"
os.environ["PASSWORD_HASH_MEMORY_COST"] = "1024"
os.environ["PASSWORD_HASH_PARALLELISM"] = "1"
# High limits so only rate limit tests ever see 429
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["AUTH_RATE_LIMIT_ATTEMPTS"] = "100000"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_DIR, "uploads")
os.makedirs(os.environ["UPLOAD_DIR"], exist_ok=True)

TEST_PASSWORD = "Str0ng!Pass"


# --- Rate Limiter / Revocation Reset Fixture ---


def _reset_app_state() -> None:
    """Clear per-process auth state held by the application instance.

    The middleware keeps references to the limiter and registry objects, so
    they are cleared in place rather than replaced.
    """
    from inkwell.main import app

    app.state.general_rate_limiter.reset()
    app.state.auth_rate_limiter.reset()
    app.state.revocations.clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter(request):
    """Reset rate limiters and revoked tokens around every test.

    Tests marked with pytest.mark.skip_rate_limiter_reset will skip this.
    """
    if request.node.get_closest_marker("skip_rate_limiter_reset"):
        yield
        return

    _reset_app_state()
    yield
    _reset_app_state()


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a throwaway SQLite database with all tables."""
    from inkwell.models import BaseModel

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path}/test.db",
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for arranging and inspecting test data."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database override."""
    from inkwell.core.database import get_db
    from inkwell.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except BaseException:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# --- Tokens ---


@pytest.fixture
def token_service():
    """The application's token service."""
    from inkwell.main import app

    return app.state.token_service


@pytest.fixture
def revocations():
    """The application's revocation registry."""
    from inkwell.main import app

    return app.state.revocations


@pytest.fixture
def covers():
    """The application's cover store; files written during the test are removed."""
    from inkwell.main import app

    store = app.state.covers
    yield store
    for path in store.directory.iterdir():
        path.unlink()


# --- Test Factories ---


@pytest.fixture
def user_factory(db_session) -> Callable[..., Awaitable]:
    """Factory for creating test User rows with a known password."""
    from inkwell.models import User
    from inkwell.services.auth import hash_password

    counter = {"n": 0}

    async def _create_user(
        username: str | None = None,
        email: str | None = None,
        password: str = TEST_PASSWORD,
        role: str = "user",
        **kwargs,
    ) -> User:
        counter["n"] += 1
        username = username or f"author{counter['n']}"
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=hash_password(password),
            role=role,
            **kwargs,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def article_factory(db_session) -> Callable[..., Awaitable]:
    """Factory for creating test Article rows."""
    from inkwell.models import Article

    async def _create_article(
        user_id: int,
        title: str = "A Test Article",
        content: str = "Some article content for testing.",
        category: str = "testing",
        **kwargs,
    ) -> Article:
        article = Article(
            user_id=user_id,
            title=title,
            content=content,
            category=category,
            **kwargs,
        )
        db_session.add(article)
        await db_session.commit()
        await db_session.refresh(article)
        return article

    return _create_article


@pytest.fixture
def auth_headers(token_service) -> Callable[..., dict[str, str]]:
    """Build an Authorization header carrying a fresh access token for a user."""
    from inkwell.services.auth import identity_for

    def _headers(user) -> dict[str, str]:
        token = token_service.issue_access_token(identity_for(user))
        return {"Authorization": f"Bearer {token}"}

    return _headers

"""
Test infrastructure for the Hacker News clone.

Strategy
--------
- SQLite in-memory via aiosqlite; StaticPool makes every session share the
  one connection, since an in-memory database lives and dies with it.
- The app's get_db dependency is overridden, which also covers the
  GraphQL context getter and the rendered pages.
- Tables are created fresh before each test and dropped after.
- The Redis cache is disabled by setting cache._redis = None, so feed
  slices always come from the database.  Tests that exercise the cache
  take the ``redis_cache`` fixture, an in-memory fakeredis client.
- Logged-in requests send ``Authorization: Bearer <token>``; the same
  token would otherwise travel in the session cookie.
"""
from datetime import datetime, timedelta, timezone

import fakeredis
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from hnclone.cache import cache
from hnclone.database import Base, build_engine, get_db
from hnclone.main import app
from hnclone.models import Comment, NewsItem, User, comment_upvotes, news_item_upvotes
from hnclone.security import build_session_token

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = build_engine(TEST_DATABASE_URL, poolclass=StaticPool)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    cache._redis = None
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def redis_cache():
    """Back the feed cache with fakeredis for one test."""
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    await client.flushall()
    cache._redis = client
    yield client
    cache._redis = None
    await client.aclose()


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    """Return request headers that log *user_id* in."""
    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {build_session_token(user_id)}"}
    return _headers


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Insert a user and commit so HTTP requests can see it."""
    async def _make(user_id: str = "alice", **fields) -> User:
        fields.setdefault("karma", 1)
        user = User(id=user_id, **fields)
        db_session.add(user)
        await db_session.commit()
        return user
    return _make


@pytest.fixture
def make_news_item(db_session: AsyncSession):
    """
    Insert a news item with *voters* (user ids) recorded as upvotes.

    ``age_minutes`` backdates ``creation_time`` so feed order is explicit.
    """
    async def _make(
        title: str,
        submitter_id: str = "alice",
        voters: tuple[str, ...] = (),
        age_minutes: int = 0,
        **fields,
    ) -> NewsItem:
        item = NewsItem(
            title=title,
            submitter_id=submitter_id,
            upvote_count=len(voters),
            creation_time=datetime.now(timezone.utc) - timedelta(minutes=age_minutes),
            **fields,
        )
        db_session.add(item)
        await db_session.flush()
        if voters:
            await db_session.execute(
                insert(news_item_upvotes),
                [{"news_item_id": item.id, "user_id": voter} for voter in voters],
            )
        await db_session.commit()
        return item
    return _make


@pytest.fixture
def make_comment(db_session: AsyncSession):
    async def _make(
        news_item_id: int,
        text: str,
        submitter_id: str = "alice",
        parent_comment_id: int | None = None,
        voters: tuple[str, ...] = (),
    ) -> Comment:
        comment = Comment(
            news_item_id=news_item_id,
            text=text,
            submitter_id=submitter_id,
            parent_comment_id=parent_comment_id,
        )
        db_session.add(comment)
        await db_session.flush()
        if voters:
            await db_session.execute(
                insert(comment_upvotes),
                [{"comment_id": comment.id, "user_id": voter} for voter in voters],
            )
        await db_session.commit()
        return comment
    return _make

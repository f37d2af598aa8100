from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from hnclone.config import settings
from hnclone.middleware import install_query_counter


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """
    Create an async engine for *url* with the per-request query counter
    attached.  Used for the production engine here and the SQLite engine
    in the test suite.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_async_engine(url, **kwargs)
    install_query_counter(engine)
    return engine


# Module-level engine variable allows tests to override with a test engine.
engine = build_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG and settings.LOG_LEVEL.upper() == "DEBUG",
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def create_schema(bind: AsyncEngine | None = None) -> None:
    """Create every table that does not exist yet (development and seeding)."""
    import hnclone.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

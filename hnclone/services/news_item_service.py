"""
News item service: reads and the three write operations exposed as
GraphQL mutations (upvote, hide, submit).

Design notes
------------
- Reads return plain dicts with ``creation_time`` already converted to
  milliseconds since the epoch, the unit the ``Date`` scalar speaks.
- ``upvotes`` / ``hides`` are lists of user ids loaded from the
  membership tables with ``selectinload``; ``comments`` holds only the
  ids of top-level comments while ``comment_count`` covers the whole
  thread.
- Writes go through Core statements.  Membership rows are inserted
  with ON CONFLICT DO NOTHING, so a repeated or concurrent vote or hide
  is a no-op, and ``upvote_count`` is bumped atomically only when the
  row was new.  Reads use ``populate_existing`` so an item already
  sitting in the identity map is refreshed after a write.
- Service functions flush but do not commit; the transaction boundary
  is owned by ``get_db``.
"""
import logging
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hnclone.cache import cache
from hnclone.models import NewsItem, news_item_hides, news_item_upvotes
from hnclone.schemas import NewsItemCreate

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_NEWS_ITEM_LOAD_OPTIONS = (
    selectinload(NewsItem.upvoters),
    selectinload(NewsItem.hiders),
    selectinload(NewsItem.comments),
)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def to_millis(value: datetime | date | None) -> int | None:
    """
    Convert a datetime (naive values are taken as UTC) or a date to whole
    milliseconds since the Unix epoch.
    """
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH) // timedelta(milliseconds=1)


def _news_item_to_dict(item: NewsItem) -> dict:
    return {
        "id": item.id,
        "title": item.title,
        "url": item.url,
        "text": item.text,
        "submitter_id": item.submitter_id,
        "creation_time": to_millis(item.creation_time),
        "is_job": item.is_job,
        "upvote_count": item.upvote_count,
        "upvotes": [user.id for user in item.upvoters],
        "hides": [user.id for user in item.hiders],
        "comments": [c.id for c in item.comments if c.parent_comment_id is None],
        "comment_count": len(item.comments),
    }


async def _news_item_exists(db: AsyncSession, news_item_id: int) -> bool:
    result = await db.execute(select(NewsItem.id).where(NewsItem.id == news_item_id))
    return result.scalar_one_or_none() is not None


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_news_item(db: AsyncSession, news_item_id: int) -> dict | None:
    """Return the news item dict for *news_item_id*, or None."""
    q = (
        select(NewsItem)
        .where(NewsItem.id == news_item_id)
        .options(*_NEWS_ITEM_LOAD_OPTIONS)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    item = result.scalar_one_or_none()
    if item is None:
        return None
    return _news_item_to_dict(item)


async def get_news_items(db: AsyncSession, news_item_ids: list[int]) -> list[dict]:
    """
    Return news item dicts in the order of *news_item_ids*.

    Unknown ids are skipped.  A single SELECT plus one per eager-loaded
    collection is issued regardless of how many ids are requested.
    """
    if not news_item_ids:
        return []
    q = (
        select(NewsItem)
        .where(NewsItem.id.in_(news_item_ids))
        .options(*_NEWS_ITEM_LOAD_OPTIONS)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    by_id = {item.id: item for item in result.scalars().all()}
    return [_news_item_to_dict(by_id[i]) for i in news_item_ids if i in by_id]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def insert_if_absent(dialect_name: str, table):
    """
    INSERT into a membership *table* that skips a row already present.
    """
    if dialect_name == "postgresql":
        return pg_insert(table).on_conflict_do_nothing()
    if dialect_name == "sqlite":
        return sqlite_insert(table).on_conflict_do_nothing()
    raise NotImplementedError(f"No conflict-free insert for dialect {dialect_name!r}")


async def _add_membership(db: AsyncSession, table, news_item_id: int, user_id: str) -> bool:
    """Insert the (item, user) row into *table*; True when it was new."""
    stmt = insert_if_absent(db.get_bind().dialect.name, table).values(
        news_item_id=news_item_id, user_id=user_id
    )
    result = await db.execute(stmt)
    return result.rowcount > 0


async def upvote_news_item(db: AsyncSession, news_item_id: int, user_id: str) -> dict | None:
    """
    Record *user_id*'s upvote on the item and return the updated item.

    Returns None when the item does not exist.  Upvoting twice leaves the
    item unchanged.
    """
    if not await _news_item_exists(db, news_item_id):
        return None

    if await _add_membership(db, news_item_upvotes, news_item_id, user_id):
        await db.execute(
            update(NewsItem)
            .where(NewsItem.id == news_item_id)
            .values(upvote_count=NewsItem.upvote_count + 1)
        )
        await db.flush()
        await cache.invalidate_feeds()
        logger.info("User %s upvoted news item %d", user_id, news_item_id)
    else:
        logger.debug("User %s already upvoted news item %d", user_id, news_item_id)

    return await get_news_item(db, news_item_id)


async def hide_news_item(db: AsyncSession, news_item_id: int, user_id: str) -> dict | None:
    """
    Hide the item for *user_id* and return it.

    Returns None when the item does not exist.  Feed ordering does not
    depend on hides, so cached feed slices stay valid.
    """
    if not await _news_item_exists(db, news_item_id):
        return None

    if await _add_membership(db, news_item_hides, news_item_id, user_id):
        await db.flush()
        logger.info("User %s hid news item %d", user_id, news_item_id)

    return await get_news_item(db, news_item_id)


async def submit_news_item(db: AsyncSession, data: NewsItemCreate) -> dict:
    """
    Create a news item and return it.

    The submitter's own upvote is recorded straight away, so a fresh item
    starts with ``upvote_count == 1``.
    """
    item = NewsItem(
        title=data.title,
        url=data.url,
        text=data.text,
        submitter_id=data.submitter_id,
        upvote_count=1,
    )
    db.add(item)
    await db.flush()

    await db.execute(
        insert(news_item_upvotes).values(news_item_id=item.id, user_id=data.submitter_id)
    )
    await db.flush()
    await cache.invalidate_feeds()
    logger.info("User %s submitted news item %d: %r", data.submitter_id, item.id, data.title)

    return await get_news_item(db, item.id)

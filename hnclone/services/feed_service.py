"""
Feed service: ordered, offset/limit slices of news items per feed type.

Only the id slice is cached (``feeds:{type}:{limit}:{skip}``); the items
themselves are always loaded through ``news_item_service`` so upvote and
hide membership is current.
"""
from enum import Enum

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hnclone.cache import cache
from hnclone.models import NewsItem
from hnclone.services import news_item_service


class FeedType(Enum):
    top = "top"
    new = "new"
    best = "best"
    show = "show"
    ask = "ask"
    job = "job"


def _title_prefix(prefix: str):
    return func.lower(NewsItem.title).like(f"{prefix.lower()}%")


def _feed_query(feed_type: FeedType) -> Select:
    q = select(NewsItem.id)
    newest = (NewsItem.creation_time.desc(), NewsItem.id.desc())

    if feed_type is FeedType.top:
        return q.where(NewsItem.is_job.is_(False)).order_by(NewsItem.upvote_count.desc(), *newest)
    if feed_type is FeedType.new:
        return q.where(NewsItem.is_job.is_(False)).order_by(*newest)
    if feed_type is FeedType.best:
        return q.where(NewsItem.is_job.is_(False)).order_by(
            NewsItem.upvote_count.desc(), NewsItem.id.desc()
        )
    if feed_type is FeedType.show:
        return q.where(NewsItem.is_job.is_(False), _title_prefix("Show HN")).order_by(*newest)
    if feed_type is FeedType.ask:
        return q.where(NewsItem.is_job.is_(False), _title_prefix("Ask HN")).order_by(*newest)
    if feed_type is FeedType.job:
        return q.where(NewsItem.is_job.is_(True)).order_by(*newest)
    raise ValueError(f"Unknown feed type: {feed_type!r}")


async def get_for_type(
    db: AsyncSession,
    feed_type: FeedType | str,
    limit: int,
    skip: int = 0,
) -> list[dict]:
    """
    Return up to *limit* news item dicts of *feed_type*, skipping the
    first *skip* entries of the ordered feed.
    """
    feed_type = FeedType(feed_type)
    skip = max(skip, 0)

    ids = await cache.get_ids(feed_type.value, limit, skip)
    if ids is None:
        q = _feed_query(feed_type).offset(skip).limit(limit)
        ids = list((await db.execute(q)).scalars().all())
        await cache.store_ids(feed_type.value, limit, skip, ids)

    return await news_item_service.get_news_items(db, ids)

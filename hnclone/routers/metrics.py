from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hnclone.cache import cache
from hnclone.database import get_db
from hnclone.models import Comment, NewsItem, User, news_item_upvotes
from hnclone.schemas import MetricsResponse

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])


def _count(table):
    return select(func.count()).select_from(table).scalar_subquery()


@router.get("", response_model=MetricsResponse)
async def get_metrics(db: AsyncSession = Depends(get_db)):
    # One round trip for every counter.
    row = (
        await db.execute(
            select(
                _count(NewsItem).label("news_items"),
                _count(Comment).label("comments"),
                _count(User).label("users"),
                _count(news_item_upvotes).label("upvotes"),
            )
        )
    ).one()

    return MetricsResponse(
        total_news_items=row.news_items,
        total_comments=row.comments,
        total_users=row.users,
        total_upvotes=row.upvotes,
        avg_comments_per_news_item=round(row.comments / row.news_items, 2) if row.news_items else 0.0,
        cache_info=cache.stats,
    )

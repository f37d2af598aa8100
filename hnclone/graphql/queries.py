"""
Root GraphQL query definitions
"""
import logging

import strawberry

from hnclone.config import settings
from hnclone.graphql.context import Info
from hnclone.graphql.types import Comment, FeedType, NewsItem, User
from hnclone.services import comment_service, feed_service, news_item_service, user_service

logger = logging.getLogger(__name__)


def clamp_feed_limit(first: int | None, maximum: int | None = None) -> int:
    """Clamp *first* to (0, maximum]; out-of-range or missing values become maximum."""
    maximum = maximum or settings.FEED_MAX_ITEMS
    if first is None or first < 1 or first > maximum:
        return maximum
    return first


@strawberry.type
class Query:
    """Root GraphQL query type."""

    @strawberry.field(description="A comment, its parent could be another comment or a news item.")
    async def comment(self, info: Info, id: int) -> Comment | None:
        data = await comment_service.get_comment(info.context.db, id)
        return Comment.from_dict(data) if data else None

    @strawberry.field
    async def feed(
        self,
        info: Info,
        type: FeedType,
        first: int | None = None,
        skip: int | None = None,
    ) -> list[NewsItem] | None:
        """Get a page of the feed of *type*, starting *skip* items in."""
        limit = clamp_feed_limit(first)
        rows = await feed_service.get_for_type(info.context.db, type, limit, skip or 0)
        return [NewsItem.from_dict(row) for row in rows]

    @strawberry.field(description="The currently logged in user or null if not logged in")
    async def me(self, info: Info) -> User | None:
        logger.debug("Me: userId: %s", info.context.user_id)
        if not info.context.user_id:
            return None
        data = await user_service.get_user(info.context.db, info.context.user_id)
        return User.from_dict(data) if data else None

    @strawberry.field(description="A news item")
    async def news_item(self, info: Info, id: int) -> NewsItem | None:
        data = await news_item_service.get_news_item(info.context.db, id)
        return NewsItem.from_dict(data) if data else None

    @strawberry.field(description="A user")
    async def user(self, info: Info, id: str) -> User | None:
        data = await user_service.get_user(info.context.db, id)
        return User.from_dict(data) if data else None

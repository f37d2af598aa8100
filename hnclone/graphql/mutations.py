"""
Root GraphQL mutation definitions
"""
import strawberry
from pydantic import ValidationError

from hnclone.graphql.context import Info, InvalidInputError, require_user
from hnclone.graphql.types import NewsItem
from hnclone.schemas import NewsItemCreate
from hnclone.services import news_item_service


@strawberry.type
class Mutation:
    """Root GraphQL mutation type."""

    @strawberry.mutation
    async def upvote_news_item(self, info: Info, id: int) -> NewsItem | None:
        user_id = require_user(info, "Must be logged in to vote.")
        data = await news_item_service.upvote_news_item(info.context.db, id, user_id)
        return NewsItem.from_dict(data) if data else None

    @strawberry.mutation
    async def hide_news_item(self, info: Info, id: int) -> NewsItem | None:
        user_id = require_user(info, "Must be logged in to hide post.")
        data = await news_item_service.hide_news_item(info.context.db, id, user_id)
        return NewsItem.from_dict(data) if data else None

    @strawberry.mutation
    async def submit_news_item(
        self,
        info: Info,
        title: str,
        url: str | None = None,
        text: str | None = None,
    ) -> NewsItem | None:
        user_id = require_user(info, "Must be logged in to submit a news item.")
        try:
            payload = NewsItemCreate(title=title, url=url, text=text, submitter_id=user_id)
        except ValidationError as exc:
            raise InvalidInputError(
                "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors())
            ) from exc
        data = await news_item_service.submit_news_item(info.context.db, payload)
        return NewsItem.from_dict(data)

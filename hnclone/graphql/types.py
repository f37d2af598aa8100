"""
GraphQL object types.

Scalar fields are filled from the service-layer dicts; fields that need
another lookup (author, comments, posts) resolve lazily through the
services on ``info.context``.
"""
import strawberry

from hnclone.graphql.context import Info
from hnclone.graphql.scalars import Date
from hnclone.services import comment_service, feed_service, user_service

FeedType = strawberry.enum(
    feed_service.FeedType,
    description="A list of options for the sort order of the feed",
)


@strawberry.type
class User:
    id: str = strawberry.field(description="The user ID is a string of the username")
    about: str | None
    creation_time: Date
    date_of_birth: Date | None
    email: str | None
    favorites: list[int] | None
    first_name: str | None
    hides: list[int]
    karma: int
    last_name: str | None
    likes: list[int]

    @strawberry.field
    async def posts(self, info: Info) -> list[int]:
        return await user_service.get_posts_for_user(info.context.db, self.id)

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=data["id"],
            about=data["about"],
            creation_time=data["creation_time"],
            date_of_birth=data["date_of_birth"],
            email=data["email"],
            favorites=data["favorites"],
            first_name=data["first_name"],
            hides=data["hides"],
            karma=data["karma"],
            last_name=data["last_name"],
            likes=data["likes"],
        )


async def _resolve_user(info: Info, user_id: str) -> User | None:
    data = await user_service.get_user(info.context.db, user_id)
    return User.from_dict(data) if data else None


async def _resolve_comments(info: Info, comment_ids: list[int]) -> list["Comment"]:
    rows = await comment_service.get_comments(info.context.db, comment_ids)
    return [Comment.from_dict(row) for row in rows]


@strawberry.type
class Comment:
    id: int
    creation_time: Date
    parent: int = strawberry.field(
        description="The ID of the item to which the comment was made on"
    )
    submitter_id: str = strawberry.field(
        description="The ID of the user who submitted the comment"
    )
    text: str | None

    upvote_ids: strawberry.Private[list[str]]
    comment_ids: strawberry.Private[list[int]]

    @strawberry.field
    async def comments(self, info: Info) -> list["Comment"]:
        return await _resolve_comments(info, self.comment_ids)

    @strawberry.field(description="Whether the currently logged in user has upvoted the comment")
    def upvoted(self, info: Info) -> bool:
        return info.context.user_id in self.upvote_ids

    @strawberry.field(description="The User who submitted the comment")
    async def author(self, info: Info) -> User | None:
        return await _resolve_user(info, self.submitter_id)

    @classmethod
    def from_dict(cls, data: dict) -> "Comment":
        return cls(
            id=data["id"],
            creation_time=data["creation_time"],
            parent=data["parent"],
            submitter_id=data["submitter_id"],
            text=data["text"],
            upvote_ids=data["upvotes"],
            comment_ids=data["comments"],
        )


@strawberry.type
class NewsItem:
    id: int
    comment_count: int
    creation_time: Date
    hides: list[str] = strawberry.field(
        description="List of user ids who have hidden this post"
    )
    submitter_id: str = strawberry.field(description="The ID of the news item submitter")
    title: str = strawberry.field(description="The news item headline")
    text: str | None
    upvotes: list[str]
    upvote_count: int
    url: str | None

    comment_ids: strawberry.Private[list[int]]

    @strawberry.field
    async def comments(self, info: Info) -> list[Comment]:
        return await _resolve_comments(info, self.comment_ids)

    @strawberry.field(description="Whether the currently logged in user has hidden the post")
    def hidden(self, info: Info) -> bool:
        return info.context.user_id in self.hides

    @strawberry.field(description="Whether the currently logged in user has upvoted the post")
    def upvoted(self, info: Info) -> bool:
        return info.context.user_id in self.upvotes

    @strawberry.field(description="Fetches the author based on submitterId")
    async def author(self, info: Info) -> User | None:
        return await _resolve_user(info, self.submitter_id)

    @classmethod
    def from_dict(cls, data: dict) -> "NewsItem":
        return cls(
            id=data["id"],
            comment_count=data["comment_count"],
            creation_time=data["creation_time"],
            hides=data["hides"],
            submitter_id=data["submitter_id"],
            title=data["title"],
            text=data["text"],
            upvotes=data["upvotes"],
            upvote_count=data["upvote_count"],
            url=data["url"],
            comment_ids=data["comments"],
        )

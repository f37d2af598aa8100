"""
Per-request GraphQL context.

Every resolver reaches the database and the logged-in user through
``info.context``; nothing else is shared between resolvers.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
import strawberry
from strawberry.fastapi import BaseContext

from hnclone.database import get_db
from hnclone.security import get_current_user_id


class NotAuthenticatedError(Exception):
    """Raised by a mutation when the request has no logged-in user."""


class InvalidInputError(Exception):
    """Raised when mutation arguments fail validation."""


class GraphQLContext(BaseContext):
    def __init__(self, db: AsyncSession, user_id: str | None = None) -> None:
        super().__init__()
        self.db = db
        self.user_id = user_id


Info = strawberry.Info[GraphQLContext, None]


def require_user(info: Info, message: str) -> str:
    """Return the context user id or raise ``NotAuthenticatedError(message)``."""
    if not info.context.user_id:
        raise NotAuthenticatedError(message)
    return info.context.user_id


async def get_context(
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> GraphQLContext:
    return GraphQLContext(db=db, user_id=user_id)

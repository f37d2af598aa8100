"""
Comment service: read access to comment threads.

A comment's ``parent`` is the id of the comment it replies to, or the id
of the news item for top-level comments.  ``comments`` lists the ids of
direct replies only; callers walk the tree one level at a time.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hnclone.models import Comment
from hnclone.services.news_item_service import to_millis

_COMMENT_LOAD_OPTIONS = (
    selectinload(Comment.upvoters),
    selectinload(Comment.replies),
)


def _comment_to_dict(comment: Comment) -> dict:
    parent = comment.parent_comment_id
    return {
        "id": comment.id,
        "parent": parent if parent is not None else comment.news_item_id,
        "news_item_id": comment.news_item_id,
        "submitter_id": comment.submitter_id,
        "text": comment.text,
        "creation_time": to_millis(comment.creation_time),
        "upvotes": [user.id for user in comment.upvoters],
        "comments": [reply.id for reply in comment.replies],
    }


async def get_comment(db: AsyncSession, comment_id: int) -> dict | None:
    """Return the comment dict for *comment_id*, or None."""
    q = (
        select(Comment)
        .where(Comment.id == comment_id)
        .options(*_COMMENT_LOAD_OPTIONS)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    comment = result.scalar_one_or_none()
    if comment is None:
        return None
    return _comment_to_dict(comment)


async def get_comments(db: AsyncSession, comment_ids: list[int]) -> list[dict]:
    """Return comment dicts in the order of *comment_ids*, skipping unknown ids."""
    if not comment_ids:
        return []
    q = (
        select(Comment)
        .where(Comment.id.in_(comment_ids))
        .options(*_COMMENT_LOAD_OPTIONS)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    by_id = {c.id: c for c in result.scalars().all()}
    return [_comment_to_dict(by_id[i]) for i in comment_ids if i in by_id]

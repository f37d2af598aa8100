"""
User service: profile lookups, account creation and password checks.

Membership lists (likes, hides, favorites) are read straight from the
association tables as id lists; no NewsItem rows are loaded for a
profile.
"""
import logging

from sqlalchemy import Table, select
from sqlalchemy.ext.asyncio import AsyncSession

from hnclone.models import NewsItem, User, news_item_hides, news_item_upvotes, user_favorites
from hnclone.schemas import UserCreate
from hnclone.security import hash_password, verify_password
from hnclone.services.news_item_service import to_millis

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "about": user.about,
        "creation_time": to_millis(user.creation_time),
        "date_of_birth": to_millis(user.date_of_birth),
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "karma": user.karma,
    }


async def _news_item_ids(db: AsyncSession, table: Table, user_id: str) -> list[int]:
    result = await db.execute(
        select(table.c.news_item_id)
        .where(table.c.user_id == user_id)
        .order_by(table.c.news_item_id)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_user(db: AsyncSession, user_id: str) -> dict | None:
    """
    Return the profile dict for *user_id* with its ``likes``, ``hides``
    and ``favorites`` id lists, or None when the user does not exist.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        return None

    data = _user_to_dict(user)
    data["likes"] = await _news_item_ids(db, news_item_upvotes, user_id)
    data["hides"] = await _news_item_ids(db, news_item_hides, user_id)
    data["favorites"] = await _news_item_ids(db, user_favorites, user_id)
    return data


async def get_posts_for_user(db: AsyncSession, user_id: str) -> list[int]:
    """Return the ids of news items submitted by *user_id*, newest first."""
    result = await db.execute(
        select(NewsItem.id)
        .where(NewsItem.submitter_id == user_id)
        .order_by(NewsItem.creation_time.desc(), NewsItem.id.desc())
    )
    return list(result.scalars().all())


async def create_user(db: AsyncSession, data: UserCreate) -> dict:
    """
    Create a new account and return its profile dict.

    Username uniqueness is enforced by the primary key; the caller turns
    the resulting ``IntegrityError`` into a 409 or a form error.
    """
    user = User(
        id=data.id,
        password_hash=hash_password(data.password),
        email=data.email,
        about=data.about,
        first_name=data.first_name,
        last_name=data.last_name,
    )
    db.add(user)
    await db.flush()
    logger.info("Created user %s", user.id)

    profile = _user_to_dict(user)
    profile.update(likes=[], hides=[], favorites=[])
    return profile


async def authenticate(db: AsyncSession, user_id: str, password: str) -> dict | None:
    """Return the profile dict when *password* matches, otherwise None."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for %r", user_id)
        return None
    return _user_to_dict(user)

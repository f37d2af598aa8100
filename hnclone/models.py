from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hnclone.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Membership tables: who upvoted / hid / favourited what
# ---------------------------------------------------------------------------
news_item_upvotes = Table(
    "news_item_upvotes",
    Base.metadata,
    Column("news_item_id", Integer, ForeignKey("news_items.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(15), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), default=_utcnow, nullable=False),
)

news_item_hides = Table(
    "news_item_hides",
    Base.metadata,
    Column("news_item_id", Integer, ForeignKey("news_items.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(15), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), default=_utcnow, nullable=False),
)

comment_upvotes = Table(
    "comment_upvotes",
    Base.metadata,
    Column("comment_id", Integer, ForeignKey("comments.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(15), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

user_favorites = Table(
    "user_favorites",
    Base.metadata,
    Column("user_id", String(15), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("news_item_id", Integer, ForeignKey("news_items.id", ondelete="CASCADE"), primary_key=True),
)


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    # The username doubles as the primary key.
    id: Mapped[str] = mapped_column(String(15), primary_key=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    about: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    karma: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    creation_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    # Relationships: lazy="raise" so every load is an explicit selectinload
    liked_items: Mapped[List["NewsItem"]] = relationship(
        "NewsItem", secondary=news_item_upvotes, back_populates="upvoters", lazy="raise"
    )
    hidden_items: Mapped[List["NewsItem"]] = relationship(
        "NewsItem", secondary=news_item_hides, back_populates="hiders", lazy="raise"
    )
    favorite_items: Mapped[List["NewsItem"]] = relationship(
        "NewsItem", secondary=user_favorites, lazy="raise"
    )


# ---------------------------------------------------------------------------
# NewsItem
# ---------------------------------------------------------------------------
class NewsItem(Base):
    __tablename__ = "news_items"

    __table_args__ = (
        # "new", "show", "ask" and "job" feeds
        Index("ix_news_items_is_job_creation_time", "is_job", "creation_time"),
        # "top" and "best" feeds
        Index("ix_news_items_upvote_count", "upvote_count"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    upvote_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_job: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    creation_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False, index=True
    )

    submitter_id: Mapped[str] = mapped_column(
        String(15), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    upvoters: Mapped[List["User"]] = relationship(
        "User", secondary=news_item_upvotes, back_populates="liked_items", lazy="raise"
    )
    hiders: Mapped[List["User"]] = relationship(
        "User", secondary=news_item_hides, back_populates="hidden_items", lazy="raise"
    )
    # Every comment in the thread, nested replies included.
    comments: Mapped[List["Comment"]] = relationship(
        "Comment", back_populates="news_item", lazy="raise", order_by="Comment.id"
    )


# ---------------------------------------------------------------------------
# Comment
# ---------------------------------------------------------------------------
class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    creation_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    submitter_id: Mapped[str] = mapped_column(
        String(15), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    news_item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("news_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # NULL for top-level comments.
    parent_comment_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True
    )

    news_item: Mapped["NewsItem"] = relationship("NewsItem", back_populates="comments", lazy="raise")
    replies: Mapped[List["Comment"]] = relationship(
        "Comment", lazy="raise", order_by="Comment.id"
    )
    upvoters: Mapped[List["User"]] = relationship("User", secondary=comment_upvotes, lazy="raise")

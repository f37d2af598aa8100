"""initial schema: users, news items, comments and membership tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 12:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(15), primary_key=True),
        sa.Column("password_hash", sa.String(100), nullable=True),
        sa.Column("about", sa.Text(), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("karma", sa.Integer(), nullable=False),
        sa.Column("creation_time", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "news_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("url", sa.String(2048), nullable=True),
        sa.Column("text", sa.Text(), nullable=True),
        sa.Column("upvote_count", sa.Integer(), nullable=False),
        sa.Column("is_job", sa.Boolean(), nullable=False),
        sa.Column("creation_time", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("submitter_id", sa.String(15), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    )
    op.create_index("ix_news_items_creation_time", "news_items", ["creation_time"])
    op.create_index("ix_news_items_submitter_id", "news_items", ["submitter_id"])
    op.create_index("ix_news_items_is_job_creation_time", "news_items", ["is_job", "creation_time"])
    op.create_index("ix_news_items_upvote_count", "news_items", ["upvote_count"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("text", sa.Text(), nullable=True),
        sa.Column("creation_time", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("submitter_id", sa.String(15), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("news_item_id", sa.Integer(), sa.ForeignKey("news_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("parent_comment_id", sa.Integer(), sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=True),
    )
    op.create_index("ix_comments_submitter_id", "comments", ["submitter_id"])
    op.create_index("ix_comments_news_item_id", "comments", ["news_item_id"])
    op.create_index("ix_comments_parent_comment_id", "comments", ["parent_comment_id"])

    for table in ("news_item_upvotes", "news_item_hides"):
        op.create_table(
            table,
            sa.Column("news_item_id", sa.Integer(), sa.ForeignKey("news_items.id", ondelete="CASCADE"), primary_key=True),
            sa.Column("user_id", sa.String(15), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        )

    op.create_table(
        "comment_upvotes",
        sa.Column("comment_id", sa.Integer(), sa.ForeignKey("comments.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.String(15), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "user_favorites",
        sa.Column("user_id", sa.String(15), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("news_item_id", sa.Integer(), sa.ForeignKey("news_items.id", ondelete="CASCADE"), primary_key=True),
    )


def downgrade() -> None:
    op.drop_table("user_favorites")
    op.drop_table("comment_upvotes")
    op.drop_table("news_item_hides")
    op.drop_table("news_item_upvotes")
    op.drop_index("ix_comments_parent_comment_id", table_name="comments")
    op.drop_index("ix_comments_news_item_id", table_name="comments")
    op.drop_index("ix_comments_submitter_id", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_news_items_upvote_count", table_name="news_items")
    op.drop_index("ix_news_items_is_job_creation_time", table_name="news_items")
    op.drop_index("ix_news_items_submitter_id", table_name="news_items")
    op.drop_index("ix_news_items_creation_time", table_name="news_items")
    op.drop_table("news_items")
    op.drop_table("users")

"""access control schema

Revision ID: 5c1e9a7d2b40
Revises:
Create Date: 2025-07-07 14:44:53.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e9a7d2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=None if nullable else sa.func.now(),
    )


def upgrade() -> None:
    """Create profiles, admin keys and the content tables the policies read."""
    op.create_table(
        "user_profiles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_index("idx_user_profiles_user_admin", "user_profiles", ["user_id", "is_admin"])

    op.create_table(
        "admin_keys",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("key_code", sa.Text(), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("used_by", sa.Text(), nullable=True),
        _timestamp("used_at", nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key_code"),
    )
    op.create_index("idx_admin_keys_code_used", "admin_keys", ["key_code", "is_used"])

    op.create_table(
        "posts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.Text(), nullable=False, server_default="pending"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_posts_status",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_posts_user_status", "posts", ["user_id", "status"])
    op.create_index("idx_posts_status_created", "posts", ["status", "created_at"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_comments_post_id", "comments", ["post_id"])

    for table, index in (("likes", "idx_likes_user_post"), ("retweets", "idx_retweets_user_post")):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("post_id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Text(), nullable=False),
            _timestamp("created_at"),
            sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(index, table, ["user_id", "post_id"])


def downgrade() -> None:
    """Drop every table created by :func:`upgrade`."""
    for table, index in (("retweets", "idx_retweets_user_post"), ("likes", "idx_likes_user_post")):
        op.drop_index(index, table_name=table)
        op.drop_table(table)
    op.drop_index("idx_comments_post_id", table_name="comments")
    op.drop_table("comments")
    op.drop_index("idx_posts_status_created", table_name="posts")
    op.drop_index("idx_posts_user_status", table_name="posts")
    op.drop_table("posts")
    op.drop_index("idx_admin_keys_code_used", table_name="admin_keys")
    op.drop_table("admin_keys")
    op.drop_index("idx_user_profiles_user_admin", table_name="user_profiles")
    op.drop_table("user_profiles")

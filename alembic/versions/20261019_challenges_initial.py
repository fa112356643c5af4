"""challenges: users, follow_graph, challenges, challenge_invites, notifications

Revision ID: 20261019_challenges_initial
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""
from __future__ import annotations
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "20261019_challenges_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

difficulty_enum = sa.Enum("All", "Easy", "Medium", "Hard", name="challenge_difficulty")
status_enum = sa.Enum("pending", "active", "completed", name="challenge_status")
json_type = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("telegram_id", sa.BigInteger(), nullable=False),
        sa.Column("username", sa.String(64), nullable=True),
        sa.Column("first_name", sa.String(128), nullable=True),
        sa.Column("last_name", sa.String(128), nullable=True),
        sa.Column("name", sa.String(256), nullable=True),
        sa.Column("photo_url", sa.String(), nullable=True),
        sa.Column("target_exam", sa.String(64), nullable=True, comment="Экзамен по умолчанию для фильтра вопросов"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_telegram_id", "users", ["telegram_id"], unique=True)
    op.create_index("ix_users_username", "users", ["username"])
    op.create_index("ix_users_name", "users", ["name"])

    op.create_table(
        "follow_graph",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("follower_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("followed_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("follower_id", "followed_id", name="uq_follow_pair"),
        sa.CheckConstraint("follower_id <> followed_id", name="ck_follow_not_self"),
    )
    op.create_index("ix_follow_graph_id", "follow_graph", ["id"])
    op.create_index("ix_follow_graph_follower", "follow_graph", ["follower_id"])
    op.create_index("ix_follow_graph_followed", "follow_graph", ["followed_id"])

    op.create_table(
        "challenges",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("creator_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("display_name", sa.String(32), nullable=False),
        sa.Column("subject", sa.String(64), nullable=False),
        sa.Column("lesson", sa.String(255), nullable=False),
        sa.Column("difficulty", difficulty_enum, nullable=False),
        sa.Column("question_count", sa.Integer(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("exam_filter", sa.String(64), nullable=True),
        sa.Column("status", status_enum, nullable=False, server_default=sa.text("'pending'")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expiry_offset_minutes", sa.Integer(), nullable=False),
        sa.CheckConstraint("question_count BETWEEN 1 AND 50", name="ck_challenge_question_count"),
        sa.CheckConstraint("duration_minutes BETWEEN 5 AND 180", name="ck_challenge_duration"),
        sa.CheckConstraint("expiry_offset_minutes = duration_minutes + 20", name="ck_challenge_expiry_offset"),
    )
    op.create_index("ix_challenges_id", "challenges", ["id"])
    op.create_index("ix_challenges_creator_id", "challenges", ["creator_id"])

    op.create_table(
        "challenge_invites",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("challenge_id", sa.Integer(), sa.ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False),
        sa.Column("invited_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("response", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("challenge_id", "invited_user_id", name="uq_challenge_invite_user"),
    )
    op.create_index("ix_challenge_invites_id", "challenge_invites", ["id"])
    op.create_index("ix_challenge_invites_user_response", "challenge_invites", ["invited_user_id", "response"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("recipient_ids", json_type, nullable=False),
        sa.Column("message", sa.String(1024), nullable=False),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("related_challenge_id", sa.Integer(), nullable=True),
        sa.Column("related_invite_id", sa.Integer(), nullable=True),
        sa.Column("seen", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("approved", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_notifications_id", "notifications", ["id"])
    op.create_index("ix_notifications_related_invite", "notifications", ["related_invite_id"])
    op.create_index("ix_notifications_recipient_ids", "notifications", ["recipient_ids"], postgresql_using="gin")


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("challenge_invites")
    op.drop_table("challenges")
    op.drop_table("follow_graph")
    op.drop_table("users")
    bind = op.get_bind()
    status_enum.drop(bind, checkfirst=True)
    difficulty_enum.drop(bind, checkfirst=True)

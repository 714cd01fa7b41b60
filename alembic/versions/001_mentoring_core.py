# alembic/versions/001_mentoring_core.py
"""Mentoring core: users, requests, relationships, sessions, notifications

Revision ID: 001_mentoring_core
Revises:
Create Date: 2026-10-19 00:00:00.000000

The partial unique index on mentoring_requests allows at most one pending
or accepted request per mentor/mentee pair while keeping any number of
declined and cancelled ones.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_mentoring_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_REQUEST_CLAUSE = sa.text("status IN ('pending', 'accepted')")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("hourly_rate", sa.Float(), nullable=True),
        sa.Column("availability", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "mentoring_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("mentee_id", sa.Integer(), nullable=False),
        sa.Column("mentor_id", sa.Integer(), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("goals", sa.Text(), nullable=True),
        sa.Column("preferred_schedule", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("decline_reason", sa.Text(), nullable=True),
        sa.Column("decided_at", sa.TIMESTAMP(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["mentee_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["mentor_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_mentoring_requests_id", "mentoring_requests", ["id"])
    op.create_index("ix_mentoring_requests_mentee_id", "mentoring_requests", ["mentee_id"])
    op.create_index("ix_mentoring_requests_mentor_id", "mentoring_requests", ["mentor_id"])
    op.create_index("ix_mentoring_requests_status", "mentoring_requests", ["status"])
    op.create_index(
        "uq_mentoring_requests_active_pair",
        "mentoring_requests",
        ["mentor_id", "mentee_id"],
        unique=True,
        postgresql_where=ACTIVE_REQUEST_CLAUSE,
        sqlite_where=ACTIVE_REQUEST_CLAUSE,
    )

    op.create_table(
        "mentor_mentee_relationships",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("mentor_id", sa.Integer(), nullable=False),
        sa.Column("mentee_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["mentor_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["mentee_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("mentor_id", "mentee_id", name="uq_relationship_pair"),
    )
    op.create_index("ix_mentor_mentee_relationships_id", "mentor_mentee_relationships", ["id"])
    op.create_index(
        "ix_mentor_mentee_relationships_mentor_id", "mentor_mentee_relationships", ["mentor_id"]
    )
    op.create_index(
        "ix_mentor_mentee_relationships_mentee_id", "mentor_mentee_relationships", ["mentee_id"]
    )

    op.create_table(
        "mentoring_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("mentor_id", sa.Integer(), nullable=False),
        sa.Column("mentee_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("scheduled_at", sa.TIMESTAMP(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="upcoming"),
        sa.Column("actual_start_time", sa.TIMESTAMP(), nullable=True),
        sa.Column("actual_end_time", sa.TIMESTAMP(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("reschedule_reason", sa.Text(), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("meeting_link", sa.String(255), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["mentor_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["mentee_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_mentoring_sessions_id", "mentoring_sessions", ["id"])
    op.create_index("ix_mentoring_sessions_mentor_id", "mentoring_sessions", ["mentor_id"])
    op.create_index("ix_mentoring_sessions_mentee_id", "mentoring_sessions", ["mentee_id"])
    op.create_index("ix_mentoring_sessions_scheduled_at", "mentoring_sessions", ["scheduled_at"])
    op.create_index("ix_mentoring_sessions_status", "mentoring_sessions", ["status"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("recipient_id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("session_id", sa.Integer(), nullable=True),
        sa.Column("request_id", sa.Integer(), nullable=True),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.String(500), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.TIMESTAMP(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["session_id"], ["mentoring_sessions.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["request_id"], ["mentoring_requests.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_id", "notifications", ["id"])
    op.create_index("ix_notifications_recipient_id", "notifications", ["recipient_id"])
    op.create_index("ix_notifications_actor_id", "notifications", ["actor_id"])
    op.create_index("ix_notifications_session_id", "notifications", ["session_id"])
    op.create_index("ix_notifications_request_id", "notifications", ["request_id"])
    op.create_index("ix_notifications_event_type", "notifications", ["event_type"])

    op.create_table(
        "scheduled_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("recipients", sa.JSON(), nullable=False),
        sa.Column("delivered_to", sa.JSON(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("due_at", sa.TIMESTAMP(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="queued"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_scheduled_events_id", "scheduled_events", ["id"])
    op.create_index("ix_scheduled_events_event_type", "scheduled_events", ["event_type"])
    op.create_index("ix_scheduled_events_due_at", "scheduled_events", ["due_at"])
    op.create_index("ix_scheduled_events_status", "scheduled_events", ["status"])


def downgrade() -> None:
    op.drop_table("scheduled_events")
    op.drop_table("notifications")
    op.drop_table("mentoring_sessions")
    op.drop_table("mentor_mentee_relationships")
    op.drop_index("uq_mentoring_requests_active_pair", table_name="mentoring_requests")
    op.drop_table("mentoring_requests")
    op.drop_table("users")

"""initialize database: message bodies, chat sessions, session messages

Revision ID: initialize_database
Revises:
Create Date: 2026-10-16 09:00:00

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "initialize_database"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema: message_bodies, chat_sessions and session_messages tables."""
    op.create_table(
        "message_bodies",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("hash", sa.String(length=8), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_message_bodies_hash", "message_bodies", ["hash"], unique=True
    )
    op.create_index(
        "ix_message_bodies_created_at", "message_bodies", ["created_at"], unique=False
    )

    op.create_table(
        "chat_sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("preview_text", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_chat_sessions_user_id", "chat_sessions", ["user_id"], unique=False
    )
    op.create_index(
        "ix_chat_sessions_is_active", "chat_sessions", ["is_active"], unique=False
    )

    op.create_table(
        "session_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("hash", sa.String(length=8), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["session_id"], ["chat_sessions.id"]),
    )
    op.create_index(
        "ix_session_messages_session_id",
        "session_messages",
        ["session_id"],
        unique=False,
    )
    op.create_index(
        "ix_session_messages_hash", "session_messages", ["hash"], unique=False
    )


def downgrade() -> None:
    """Drop message_bodies, chat_sessions and session_messages tables."""
    op.drop_index("ix_session_messages_hash", table_name="session_messages")
    op.drop_index("ix_session_messages_session_id", table_name="session_messages")
    op.drop_table("session_messages")
    op.drop_index("ix_chat_sessions_is_active", table_name="chat_sessions")
    op.drop_index("ix_chat_sessions_user_id", table_name="chat_sessions")
    op.drop_table("chat_sessions")
    op.drop_index("ix_message_bodies_created_at", table_name="message_bodies")
    op.drop_index("ix_message_bodies_hash", table_name="message_bodies")
    op.drop_table("message_bodies")

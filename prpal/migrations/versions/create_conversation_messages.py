"""Create conversation_messages table

Revision ID: conversation_messages_001
Revises: pull_request_reviews_001
Create Date: 2026-10-01 00:06:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.sql import func

revision = "conversation_messages_001"
down_revision = "pull_request_reviews_001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "conversation_messages",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column(
            "review_id",
            sa.Integer,
            sa.ForeignKey("pull_request_reviews.id"),
            nullable=False,
        ),
        sa.Column("sender", sa.String(50), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("llm_model_used", sa.String(255), nullable=True),
        sa.Column("reply_to_id", sa.Integer, nullable=True),
        sa.Column("token_count", sa.Integer, nullable=True),
        sa.Column("order", sa.Integer, nullable=False),
        sa.Column("timestamp", sa.DateTime, server_default=func.now(), nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.UniqueConstraint("review_id", "order", name="uq_conversation_message_order"),
    )
    op.create_index(
        op.f("ix_conversation_messages_review_id"),
        "conversation_messages",
        ["review_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_conversation_messages_reply_to_id"),
        "conversation_messages",
        ["reply_to_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        op.f("ix_conversation_messages_reply_to_id"), table_name="conversation_messages"
    )
    op.drop_index(
        op.f("ix_conversation_messages_review_id"), table_name="conversation_messages"
    )
    op.drop_table("conversation_messages")

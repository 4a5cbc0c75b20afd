"""Create llm_api_keys table

Revision ID: llm_api_keys_001
Revises: user_sessions_001
Create Date: 2026-10-01 00:02:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.sql import func

# revision identifiers, used by Alembic.
revision = "llm_api_keys_001"
down_revision = "user_sessions_001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "llm_api_keys",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("llm_provider", sa.String(50), nullable=False),
        sa.Column("encrypted_api_key", sa.Text, nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.UniqueConstraint(
            "user_id", "llm_provider", name="uq_llm_api_key_user_provider"
        ),
    )
    op.create_index(
        op.f("ix_llm_api_keys_user_id"), "llm_api_keys", ["user_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_llm_api_keys_user_id"), table_name="llm_api_keys")
    op.drop_table("llm_api_keys")

"""Create users table

Revision ID: users_001
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.sql import func

# revision identifiers, used by Alembic.
revision = "users_001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("email_address", sa.String(255), nullable=False),
        sa.Column("password_digest", sa.String(255), nullable=False),
        sa.Column("encrypted_github_token", sa.Text, nullable=True),
        sa.Column("default_llm_provider", sa.String(50), nullable=True),
        sa.Column("default_llm_model", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime, server_default=func.now(), nullable=False),
    )
    op.create_index(
        op.f("ix_users_email_address"), "users", ["email_address"], unique=True
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_users_email_address"), table_name="users")
    op.drop_table("users")

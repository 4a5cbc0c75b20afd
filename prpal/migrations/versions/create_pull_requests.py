"""Create pull_requests table

Revision ID: pull_requests_001
Revises: repositories_001
Create Date: 2026-10-01 00:04:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.sql import func

revision = "pull_requests_001"
down_revision = "repositories_001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "pull_requests",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column(
            "repository_id", sa.Integer, sa.ForeignKey("repositories.id"), nullable=False
        ),
        sa.Column("external_pr_number", sa.Integer, nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("body", sa.Text, nullable=True),
        sa.Column("state", sa.String(20), nullable=False, server_default="open"),
        sa.Column("author", sa.String(255), nullable=False, server_default="unknown"),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("ci_status", sa.String(20), nullable=True),
        sa.Column("ci_status_raw", sa.JSON, nullable=True),
        sa.Column("ci_status_updated_at", sa.DateTime, nullable=True),
        sa.Column("external_created_at", sa.DateTime, nullable=True),
        sa.Column("external_updated_at", sa.DateTime, nullable=True),
        sa.Column("last_synced_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.UniqueConstraint(
            "repository_id",
            "external_pr_number",
            name="uq_pull_request_repository_pr",
        ),
    )
    op.create_index(
        op.f("ix_pull_requests_repository_id"),
        "pull_requests",
        ["repository_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_pull_requests_external_pr_number"),
        "pull_requests",
        ["external_pr_number"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_pull_requests_external_pr_number"), table_name="pull_requests")
    op.drop_index(op.f("ix_pull_requests_repository_id"), table_name="pull_requests")
    op.drop_table("pull_requests")

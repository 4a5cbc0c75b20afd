"""Create pull_request_reviews table

Revision ID: pull_request_reviews_001
Revises: pull_requests_001
Create Date: 2026-10-01 00:05:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.sql import func

revision = "pull_request_reviews_001"
down_revision = "pull_requests_001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "pull_request_reviews",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "repository_id", sa.Integer, sa.ForeignKey("repositories.id"), nullable=False
        ),
        sa.Column(
            "pull_request_id",
            sa.Integer,
            sa.ForeignKey("pull_requests.id"),
            nullable=True,
        ),
        sa.Column("external_pr_number", sa.Integer, nullable=False),
        sa.Column("pr_url", sa.String(500), nullable=False),
        sa.Column("pr_title", sa.String(500), nullable=False),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default="in_progress"
        ),
        sa.Column(
            "sync_status", sa.String(20), nullable=False, server_default="pending"
        ),
        sa.Column("ci_status", sa.String(20), nullable=True),
        sa.Column("llm_context_summary", sa.Text, nullable=True),
        sa.Column("pr_diff", sa.Text, nullable=True),
        sa.Column("last_synced_at", sa.DateTime, nullable=True),
        sa.Column("last_viewed_at", sa.DateTime, nullable=True),
        sa.Column(
            "last_message_order", sa.Integer, nullable=False, server_default="0"
        ),
        sa.Column("created_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.UniqueConstraint(
            "repository_id", "external_pr_number", name="uq_review_repository_pr"
        ),
    )
    for column in ("user_id", "repository_id", "pull_request_id", "external_pr_number", "status"):
        op.create_index(
            op.f(f"ix_pull_request_reviews_{column}"),
            "pull_request_reviews",
            [column],
            unique=False,
        )


def downgrade() -> None:
    for column in ("user_id", "repository_id", "pull_request_id", "external_pr_number", "status"):
        op.drop_index(
            op.f(f"ix_pull_request_reviews_{column}"), table_name="pull_request_reviews"
        )
    op.drop_table("pull_request_reviews")

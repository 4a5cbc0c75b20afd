import enum
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, Session, UniqueConstraint, col, select

from prpal.core.errors import NotFoundError
from prpal.models.base_model import BaseModel, utcnow
from prpal.models.conversation_message import ConversationMessage

AUTO_SYNC_INTERVAL = timedelta(minutes=15)
STALE_AFTER = timedelta(hours=1)
# Largest value a signed 64-bit INTEGER primary key can hold.
MAX_ROW_ID = 2**63 - 1


class ReviewStatus(str, enum.Enum):
    """Lifecycle of a user's review session."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class SyncStatus(str, enum.Enum):
    """pending -> syncing -> completed | failed; completed/failed -> syncing again."""

    PENDING = "pending"
    SYNCING = "syncing"
    COMPLETED = "completed"
    FAILED = "failed"


class PullRequestReview(BaseModel, table=True):
    __tablename__ = "pull_request_reviews"
    __table_args__ = (
        UniqueConstraint(
            "repository_id", "external_pr_number", name="uq_review_repository_pr"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    repository_id: int = Field(foreign_key="repositories.id", index=True)
    pull_request_id: Optional[int] = Field(
        default=None, foreign_key="pull_requests.id", index=True
    )
    external_pr_number: int = Field(index=True)
    pr_url: str
    pr_title: str
    status: str = Field(default=ReviewStatus.IN_PROGRESS.value, index=True)
    sync_status: str = Field(default=SyncStatus.PENDING.value)
    ci_status: Optional[str] = None
    llm_context_summary: Optional[str] = Field(
        default=None, sa_column=Column(Text, nullable=True)
    )
    pr_diff: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    last_synced_at: Optional[datetime] = None
    last_viewed_at: Optional[datetime] = None
    # Highest message order ever assigned; deleted orders stay retired.
    last_message_order: int = Field(default=0)

    def __repr__(self):
        return f"<PullRequestReview(id={self.id}, external_pr_number={self.external_pr_number}, status={self.status})>"

    # Status transitions

    def mark_as_viewed(self, session: Session, now: Optional[datetime] = None):
        self.last_viewed_at = now or utcnow()
        return self.save(session)

    def mark_as_completed(self, session: Session):
        if self.status == ReviewStatus.COMPLETED.value:
            return self
        self.status = ReviewStatus.COMPLETED.value
        return self.save(session)

    def mark_as_archived(self, session: Session):
        if self.status == ReviewStatus.ARCHIVED.value:
            return self
        self.status = ReviewStatus.ARCHIVED.value
        return self.save(session)

    # Sync state

    def is_syncing(self) -> bool:
        return self.sync_status == SyncStatus.SYNCING.value

    def sync_completed(self) -> bool:
        return self.sync_status == SyncStatus.COMPLETED.value

    def sync_failed(self) -> bool:
        return self.sync_status == SyncStatus.FAILED.value

    def needs_auto_sync(self, now: Optional[datetime] = None) -> bool:
        if self.is_syncing():
            return False
        if self.last_synced_at is None:
            return True
        return self.last_synced_at < (now or utcnow()) - AUTO_SYNC_INTERVAL

    def is_stale(self, now: Optional[datetime] = None) -> bool:
        if self.last_synced_at is None:
            return True
        return self.last_synced_at < (now or utcnow()) - STALE_AFTER

    # Transcript helpers

    def messages(self, session: Session) -> List[ConversationMessage]:
        return ConversationMessage.ordered_for_review(session, self.id)

    def total_message_count(self, session: Session) -> int:
        return len(self.messages(session))

    def last_message(self, session: Session) -> Optional[ConversationMessage]:
        return session.exec(
            select(ConversationMessage)
            .where(ConversationMessage.review_id == self.id)
            .order_by(col(ConversationMessage.order).desc())
            .limit(1)
        ).first()

    def destroy(self, session: Session, commit: bool = True):
        ConversationMessage.delete_for_review(session, self.id)
        session.flush()
        session.delete(self)
        if commit:
            session.commit()

    # Queries

    @classmethod
    def find_for_user(
        cls, session: Session, user_id: int, review_id
    ) -> "PullRequestReview":
        """Fetch a review owned by the user; any miss is reported the same way."""
        try:
            review_id = int(review_id)
        except (TypeError, ValueError):
            raise NotFoundError()
        if not 1 <= review_id <= MAX_ROW_ID:
            raise NotFoundError()
        review = session.exec(
            select(cls).where(cls.id == review_id, cls.user_id == user_id)
        ).first()
        if review is None:
            raise NotFoundError()
        return review

    @classmethod
    def exists_for_user(cls, session: Session, user_id: int, review_id) -> bool:
        try:
            cls.find_for_user(session, user_id, review_id)
        except NotFoundError:
            return False
        return True

    @classmethod
    def in_progress_for_user(
        cls, session: Session, user_id: int
    ) -> List["PullRequestReview"]:
        return list(
            session.exec(
                select(cls)
                .where(
                    cls.user_id == user_id,
                    cls.status == ReviewStatus.IN_PROGRESS.value,
                )
                .order_by(col(cls.updated_at).desc())
            ).all()
        )

    @classmethod
    def find_by_number(
        cls, session: Session, repository_id: int, external_pr_number: int
    ) -> Optional["PullRequestReview"]:
        return session.exec(
            select(cls).where(
                cls.repository_id == repository_id,
                cls.external_pr_number == external_pr_number,
            )
        ).first()

    @classmethod
    def for_repository(
        cls, session: Session, repository_id: int
    ) -> List["PullRequestReview"]:
        return list(
            session.exec(select(cls).where(cls.repository_id == repository_id)).all()
        )

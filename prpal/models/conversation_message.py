from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, Text, func
from sqlmodel import Field, Session, UniqueConstraint, col, select

from prpal.models.base_model import BaseModel, utcnow

USER_SENDER = "user"
SYSTEM_SENDER = "system"


class ConversationMessage(BaseModel, table=True):
    __tablename__ = "conversation_messages"
    __table_args__ = (
        UniqueConstraint("review_id", "order", name="uq_conversation_message_order"),
    )

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    review_id: int = Field(foreign_key="pull_request_reviews.id", index=True)
    sender: str
    content: str = Field(sa_column=Column(Text, nullable=False))
    llm_model_used: Optional[str] = None
    # The user message this reply or error answers; None for user messages.
    reply_to_id: Optional[int] = Field(default=None, index=True)
    token_count: Optional[int] = None
    order: int
    timestamp: datetime = Field(default_factory=utcnow)

    def __repr__(self):
        return f"<ConversationMessage(review_id={self.review_id}, order={self.order}, sender={self.sender})>"

    def from_user(self) -> bool:
        return self.sender == USER_SENDER

    def from_llm(self) -> bool:
        return not self.from_user()

    @property
    def placeholder_id(self) -> str:
        """DOM id of the "awaiting reply" placeholder shown after a user message."""
        return f"llm_placeholder_{self.id}"

    @classmethod
    def next_order(cls, session: Session, review_id: int) -> int:
        """One past the highest order the review has used; 1 for a new transcript.

        Orders of deleted messages are never handed out again: the review's
        last_message_order remembers them after the rows are gone.
        """
        from prpal.models.pull_request_review import PullRequestReview

        current = session.exec(
            select(func.max(cls.order)).where(cls.review_id == review_id)
        ).one()
        review = session.get(PullRequestReview, review_id)
        high_water = review.last_message_order if review is not None else 0
        return max(current or 0, high_water) + 1

    @classmethod
    def reply_for(
        cls, session: Session, user_message_id: int
    ) -> Optional["ConversationMessage"]:
        return session.exec(select(cls).where(cls.reply_to_id == user_message_id)).first()

    @classmethod
    def ordered_for_review(
        cls, session: Session, review_id: int
    ) -> List["ConversationMessage"]:
        return list(
            session.exec(
                select(cls)
                .where(cls.review_id == review_id)
                .order_by(col(cls.order).asc())
            ).all()
        )

    @classmethod
    def delete_for_review(cls, session: Session, review_id: int) -> int:
        messages = session.exec(select(cls).where(cls.review_id == review_id)).all()
        for message in messages:
            session.delete(message)
        return len(messages)

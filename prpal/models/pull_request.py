import enum
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, JSON, Text
from sqlmodel import Field, Session, UniqueConstraint, select

from prpal.models.base_model import BaseModel
from prpal.models.pull_request_review import PullRequestReview


class PullRequestState(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"


class PullRequest(BaseModel, table=True):
    __tablename__ = "pull_requests"
    __table_args__ = (
        UniqueConstraint(
            "repository_id", "external_pr_number", name="uq_pull_request_repository_pr"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    repository_id: int = Field(foreign_key="repositories.id", index=True)
    external_pr_number: int = Field(index=True)
    title: str
    body: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    state: str = Field(default=PullRequestState.OPEN.value)
    author: str = Field(default="unknown")
    url: str
    ci_status: Optional[str] = None
    ci_status_raw: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column(JSON, nullable=True)
    )
    ci_status_updated_at: Optional[datetime] = None
    external_created_at: Optional[datetime] = None
    external_updated_at: Optional[datetime] = None
    last_synced_at: Optional[datetime] = None

    def __repr__(self):
        return f"<PullRequest(repository_id={self.repository_id}, number={self.external_pr_number}, state={self.state})>"

    @property
    def number(self) -> int:
        return self.external_pr_number

    def is_open(self) -> bool:
        return self.state == PullRequestState.OPEN.value

    def is_closed(self) -> bool:
        return self.state == PullRequestState.CLOSED.value

    def is_merged(self) -> bool:
        return self.state == PullRequestState.MERGED.value

    @classmethod
    def find_by_number(
        cls, session: Session, repository_id: int, external_pr_number: int
    ) -> Optional["PullRequest"]:
        return session.exec(
            select(cls).where(
                cls.repository_id == repository_id,
                cls.external_pr_number == external_pr_number,
            )
        ).first()

    @classmethod
    def find_or_create(
        cls,
        session: Session,
        repository_id: int,
        external_pr_number: int,
        **defaults,
    ) -> "PullRequest":
        """Return the existing row, or create one from ``defaults``.

        Defaults are only applied on creation; an existing PR is returned
        untouched.
        """
        pull_request = cls.find_by_number(session, repository_id, external_pr_number)
        if pull_request is not None:
            return pull_request
        pull_request = cls(
            repository_id=repository_id,
            external_pr_number=external_pr_number,
            **defaults,
        )
        return pull_request.save(session)

    @classmethod
    def for_repository(cls, session: Session, repository_id: int) -> List["PullRequest"]:
        return list(
            session.exec(select(cls).where(cls.repository_id == repository_id)).all()
        )

    def destroy(self, session: Session, commit: bool = True):
        reviews = session.exec(
            select(PullRequestReview).where(
                PullRequestReview.pull_request_id == self.id
            )
        ).all()
        for review in reviews:
            review.destroy(session, commit=False)
        session.flush()
        session.delete(self)
        if commit:
            session.commit()

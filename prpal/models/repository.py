from sqlmodel import Field, Session, UniqueConstraint, col, select
from typing import List, Optional

from prpal.core.errors import NotFoundError
from prpal.models.base_model import BaseModel
from prpal.models.pull_request import PullRequest
from prpal.models.pull_request_review import PullRequestReview


class Repository(BaseModel, table=True):
    __tablename__ = "repositories"
    __table_args__ = (
        UniqueConstraint("owner", "name", "user_id", name="uq_repository_owner_name_user"),
    )

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    owner: str
    name: str
    user_id: int = Field(foreign_key="users.id", index=True)

    def __repr__(self):
        return f"<Repository(owner={self.owner}, name={self.name}, user_id={self.user_id})>"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def github_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.name}"

    @classmethod
    def find_for_user(cls, session: Session, user_id: int, repository_id) -> "Repository":
        repository = session.exec(
            select(cls).where(cls.id == repository_id, cls.user_id == user_id)
        ).first()
        if repository is None:
            raise NotFoundError()
        return repository

    @classmethod
    def find_or_create_for_user(
        cls, session: Session, user_id: int, owner: str, name: str
    ) -> "Repository":
        repository = session.exec(
            select(cls).where(
                cls.user_id == user_id, cls.owner == owner, cls.name == name
            )
        ).first()
        if repository is None:
            repository = cls(owner=owner, name=name, user_id=user_id).save(session)
        return repository

    @classmethod
    def for_user(cls, session: Session, user_id: int) -> List["Repository"]:
        return list(
            session.exec(
                select(cls)
                .where(cls.user_id == user_id)
                .order_by(col(cls.owner), col(cls.name))
            ).all()
        )

    def destroy(self, session: Session, commit: bool = True):
        for review in PullRequestReview.for_repository(session, self.id):
            review.destroy(session, commit=False)
        session.flush()
        for pull_request in PullRequest.for_repository(session, self.id):
            session.delete(pull_request)
        session.flush()
        session.delete(self)
        if commit:
            session.commit()

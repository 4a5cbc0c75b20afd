from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel as PydanticBaseModel
from sqlmodel import Session

from prpal.core.errors import ProviderError
from prpal.models.pull_request import PullRequest, PullRequestState
from prpal.models.pull_request_review import PullRequestReview, ReviewStatus
from prpal.models.repository import Repository
from prpal.models.user import User
from prpal.utils.logger import logger


class PullRequestData(PydanticBaseModel):
    """A provider's view of one pull request."""

    number: int
    title: str
    body: Optional[str] = None
    state: str = PullRequestState.OPEN.value
    author: str = "unknown"
    url: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    head_sha: Optional[str] = None


class PullRequestDataProvider(ABC):
    """Source of pull request metadata, diffs and CI results."""

    name = "base"

    @abstractmethod
    def fetch_pr_details(
        self, owner: str, name: str, pr_number: int, user: User
    ) -> PullRequestData:
        pass

    @abstractmethod
    def fetch_pr_diff(self, owner: str, name: str, pr_number: int, user: User) -> str:
        pass

    @abstractmethod
    def fetch_repository_pull_requests(
        self, repository: Repository, user: User
    ) -> List[PullRequestData]:
        pass

    def fetch_pr_ci_statuses(
        self, owner: str, name: str, pr_number: int, user: User
    ) -> Optional[Dict[str, Any]]:
        """Raw CI data (``statuses`` and ``check_runs``), or None if unsupported."""
        return None

    def fetch_or_create_pr_review(
        self, session: Session, owner: str, name: str, pr_number: int, user: User
    ) -> Tuple[Repository, PullRequestReview]:
        """Find the user's review for a PR, creating repository, PR and review as needed.

        Existing reviews are returned untouched; keeping them fresh is the
        syncer's job. If the provider can't describe a new PR, a basic
        review is created so the user can still open it.
        """
        repository = Repository.find_or_create_for_user(session, user.id, owner, name)
        review = PullRequestReview.find_by_number(session, repository.id, pr_number)
        if review is not None:
            return repository, review

        try:
            details = self.fetch_pr_details(owner, name, pr_number, user)
            diff = self.fetch_pr_diff(owner, name, pr_number, user)
        except ProviderError as e:
            logger.error(
                f"{self.name} provider failed for {owner}/{name}#{pr_number}: {e.message}"
            )
            return repository, self._create_basic_review(
                session, repository, pr_number, user
            )

        pull_request = PullRequest.find_or_create(
            session,
            repository.id,
            pr_number,
            title=details.title,
            body=details.body,
            state=details.state,
            author=details.author,
            url=details.url,
            external_created_at=details.created_at,
            external_updated_at=details.updated_at,
        )
        review = PullRequestReview(
            user_id=user.id,
            repository_id=repository.id,
            pull_request_id=pull_request.id,
            external_pr_number=pr_number,
            pr_title=details.title,
            pr_url=details.url,
            pr_diff=diff,
            status=ReviewStatus.IN_PROGRESS.value,
        ).save(session)
        logger.info(f"Created review {review.id} for {repository.full_name}#{pr_number}")
        return repository, review

    def _create_basic_review(
        self, session: Session, repository: Repository, pr_number: int, user: User
    ) -> PullRequestReview:
        return PullRequestReview(
            user_id=user.id,
            repository_id=repository.id,
            external_pr_number=pr_number,
            pr_title=f"PR #{pr_number} in {repository.full_name} (details unavailable)",
            pr_url=f"{repository.github_url}/pull/{pr_number}",
            status=ReviewStatus.IN_PROGRESS.value,
        ).save(session)

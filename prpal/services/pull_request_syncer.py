"""Keeps reviews and pull requests in step with their data provider.

Repository-level and review-level syncs are not serialised against each
other. Both may write the same review row; the last write wins.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from sqlmodel import Session

from prpal.core.errors import ProviderError
from prpal.data_providers.base import PullRequestData, PullRequestDataProvider
from prpal.data_providers.ci import summarize_ci_status
from prpal.data_providers.factory import provider_for
from prpal.events.broadcaster import SYNC_STATUS_EVENT, Broadcaster, broadcaster
from prpal.models.base_model import utcnow
from prpal.models.pull_request import PullRequest, PullRequestState
from prpal.models.pull_request_review import PullRequestReview, ReviewStatus, SyncStatus
from prpal.models.repository import Repository
from prpal.models.user import User
from prpal.utils.logger import logger

SUCCESS = "success"
PARTIAL_SUCCESS = "partial_success"
NO_PRS = "no_prs"
ERROR = "error"


@dataclass
class SyncResult:
    synced: int = 0
    closed: int = 0
    errors: List[str] = field(default_factory=list)
    status: str = SUCCESS

    def to_dict(self) -> dict:
        return {
            "synced": self.synced,
            "closed": self.closed,
            "errors": self.errors,
            "status": self.status,
        }


def sync_status_payload(review: PullRequestReview) -> dict:
    return {
        "review_id": review.id,
        "sync_status": review.sync_status,
        "last_synced_at": review.last_synced_at,
        "pr_title": review.pr_title,
        "pr_url": review.pr_url,
        "ci_status": review.ci_status,
    }


class PullRequestSyncer:
    def __init__(
        self,
        provider: Optional[PullRequestDataProvider] = None,
        live_updates: Optional[Broadcaster] = None,
        provider_factory: Callable[[Optional[User]], PullRequestDataProvider] = provider_for,
    ):
        self.provider = provider
        self.live_updates = live_updates
        self.provider_factory = provider_factory

    def _provider(self, user: Optional[User]) -> PullRequestDataProvider:
        if self.provider is not None:
            return self.provider
        return self.provider_factory(user)

    def _broadcaster(self) -> Broadcaster:
        return self.live_updates or broadcaster()

    def _notify(self, review: PullRequestReview):
        self._broadcaster().publish(
            review.id, SYNC_STATUS_EVENT, sync_status_payload(review)
        )

    def _fetch_ci(
        self,
        provider: PullRequestDataProvider,
        repository: Repository,
        number: int,
        user: User,
    ):
        try:
            ci_data = provider.fetch_pr_ci_statuses(
                repository.owner, repository.name, number, user
            )
        except ProviderError as e:
            logger.warning(
                f"Failed to fetch CI status for {repository.full_name}#{number}: {e.message}"
            )
            return None, None
        if ci_data is None:
            return None, None
        return summarize_ci_status(ci_data), ci_data

    def sync_review(
        self, session: Session, review: PullRequestReview, raise_errors: bool = True
    ) -> PullRequestReview:
        """Refresh the review's PR snapshot.

        With ``raise_errors=False`` a failure is logged and swallowed; the
        review is still left in the ``failed`` state.
        """
        if review.is_syncing():
            logger.info(f"Review {review.id} is already syncing; skipping.")
            return review

        review.sync_status = SyncStatus.SYNCING.value
        review.save(session)
        self._notify(review)

        try:
            repository = session.get(Repository, review.repository_id)
            user = session.get(User, review.user_id)
            provider = self._provider(user)
            number = review.external_pr_number
            logger.info(
                f"Syncing review {review.id} ({repository.full_name}#{number}) with {provider.name} provider"
            )

            details = provider.fetch_pr_details(repository.owner, repository.name, number, user)
            diff = provider.fetch_pr_diff(repository.owner, repository.name, number, user)
            ci_status, ci_data = self._fetch_ci(provider, repository, number, user)
            now = utcnow()

            review.pr_title = details.title
            review.pr_url = details.url
            review.pr_diff = diff
            if ci_status is not None:
                review.ci_status = ci_status
            review.last_synced_at = now
            review.sync_status = SyncStatus.COMPLETED.value
            session.add(review)

            if review.pull_request_id is not None:
                pull_request = session.get(PullRequest, review.pull_request_id)
                if pull_request is not None:
                    self._apply_details(pull_request, details, now, ci_status, ci_data)
                    session.add(pull_request)

            review.save(session)
        except Exception as e:
            logger.exception(f"Failed to sync review {review.id}: {e}")
            session.rollback()
            review.sync_status = SyncStatus.FAILED.value
            review.save(session)
            self._notify(review)
            if raise_errors:
                if isinstance(e, ProviderError):
                    raise
                raise ProviderError(f"Sync failed: {e}") from e
            return review

        logger.info(f"Review {review.id} synced successfully.")
        self._notify(review)
        return review

    @staticmethod
    def _apply_details(
        pull_request: PullRequest,
        details: PullRequestData,
        now,
        ci_status: Optional[str] = None,
        ci_data: Optional[dict] = None,
    ):
        pull_request.title = details.title
        pull_request.body = details.body
        pull_request.state = details.state
        pull_request.author = details.author
        pull_request.url = details.url
        if details.created_at is not None:
            pull_request.external_created_at = details.created_at
        pull_request.external_updated_at = details.updated_at
        pull_request.last_synced_at = now
        if ci_status is not None:
            pull_request.ci_status = ci_status
            pull_request.ci_status_raw = ci_data
            pull_request.ci_status_updated_at = now

    def sync_repository(self, session: Session, repository: Repository) -> SyncResult:
        """Upsert every PR the provider lists and archive reviews whose PR vanished.

        Provider failures are reported in the result rather than raised.
        """
        user = session.get(User, repository.user_id)
        provider = self._provider(user)
        logger.info(
            f"Starting PR sync for {repository.full_name} (ID: {repository.id}) using {provider.name} provider"
        )

        try:
            items = provider.fetch_repository_pull_requests(repository, user)
        except Exception as e:
            logger.error(f"PR sync failed for {repository.full_name}: {e}")
            return SyncResult(errors=[str(e)], status=ERROR)

        if not items:
            logger.info(f"No pull requests found for {repository.full_name}")
            return SyncResult(status=NO_PRS)

        result = SyncResult()
        listed = set()
        for item in items:
            listed.add(item.number)
            try:
                self._sync_pull_request(session, repository, user, provider, item)
                result.synced += 1
            except Exception as e:
                session.rollback()
                message = f"Failed to sync PR #{item.number} in {repository.full_name}: {e}"
                logger.error(message)
                result.errors.append(message)

        result.closed = self._close_missing(session, repository, listed)
        result.status = PARTIAL_SUCCESS if result.errors else SUCCESS
        logger.info(
            f"PR sync completed for {repository.full_name}: {result.synced} synced, "
            f"{result.closed} closed, {len(result.errors)} errors"
        )
        return result

    def _sync_pull_request(
        self,
        session: Session,
        repository: Repository,
        user: User,
        provider: PullRequestDataProvider,
        item: PullRequestData,
    ) -> PullRequest:
        now = utcnow()
        pull_request = PullRequest.find_by_number(session, repository.id, item.number)
        if pull_request is None:
            pull_request = PullRequest(
                repository_id=repository.id,
                external_pr_number=item.number,
                title=item.title,
                url=item.url,
            )
        ci_status, ci_data = self._fetch_ci(provider, repository, item.number, user)
        self._apply_details(pull_request, item, now, ci_status, ci_data)
        pull_request.save(session)

        review = PullRequestReview.find_by_number(session, repository.id, item.number)
        if review is None:
            status = (
                ReviewStatus.IN_PROGRESS.value
                if item.state == PullRequestState.OPEN.value
                else ReviewStatus.ARCHIVED.value
            )
            review = PullRequestReview(
                user_id=repository.user_id,
                repository_id=repository.id,
                external_pr_number=item.number,
                status=status,
                pr_title=item.title,
                pr_url=item.url,
            )
        review.pull_request_id = pull_request.id
        review.pr_title = item.title
        review.pr_url = item.url
        if ci_status is not None:
            review.ci_status = ci_status
        review.save(session)
        return pull_request

    def _close_missing(self, session: Session, repository: Repository, listed: set) -> int:
        closed = 0
        for review in PullRequestReview.for_repository(session, repository.id):
            if review.external_pr_number in listed:
                continue
            if review.status != ReviewStatus.IN_PROGRESS.value:
                continue
            logger.info(
                f"PR #{review.external_pr_number} is no longer listed for {repository.full_name}; archiving review {review.id}"
            )
            if review.pull_request_id is not None:
                pull_request = session.get(PullRequest, review.pull_request_id)
                if pull_request is not None and pull_request.is_open():
                    pull_request.state = PullRequestState.CLOSED.value
                    pull_request.save(session)
            review.mark_as_archived(session)
            closed += 1
        return closed

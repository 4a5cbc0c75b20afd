import pytest

from prpal.core.errors import ProviderError
from prpal.events.broadcaster import SYNC_STATUS_EVENT
from prpal.models.pull_request import PullRequest
from prpal.models.pull_request_review import PullRequestReview, ReviewStatus, SyncStatus
from prpal.services.pull_request_syncer import (
    ERROR,
    NO_PRS,
    PARTIAL_SUCCESS,
    SUCCESS,
    PullRequestSyncer,
)
from prpal.tests.unit.helpers import (
    FailingBroadcaster,
    FakeProvider,
    make_review,
    pr_data,
    provider_failure,
    reload_review,
)


def sync_statuses(live_updates):
    return [payload["sync_status"] for payload in live_updates.events(SYNC_STATUS_EVENT)]


class TestSyncReview:
    def test_is_a_no_op_while_already_syncing(self, session, review, live_updates):
        review.sync_status = SyncStatus.SYNCING.value
        review.save(session)
        provider = FakeProvider()

        PullRequestSyncer(provider, live_updates).sync_review(session, review)

        assert provider.calls == []
        assert live_updates.published == []
        assert reload_review(session, review).sync_status == SyncStatus.SYNCING.value

    def test_success_updates_review_and_pull_request(self, session, review, live_updates):
        provider = FakeProvider(ci={"check_runs": [{"status": "completed", "conclusion": "failure"}]})

        PullRequestSyncer(provider, live_updates).sync_review(session, review)

        review = reload_review(session, review)
        assert review.sync_status == SyncStatus.COMPLETED.value
        assert review.pr_title == "Updated title"
        assert review.pr_diff == provider.diff
        assert review.ci_status == "failure"
        assert review.last_synced_at is not None
        assert not review.needs_auto_sync()

        pull_request = session.get(PullRequest, review.pull_request_id)
        assert pull_request.title == "Updated title"
        assert pull_request.author == "octocat"
        assert pull_request.ci_status == "failure"
        assert pull_request.last_synced_at is not None

        assert sync_statuses(live_updates) == ["syncing", "completed"]

    def test_failure_marks_review_failed_and_raises(self, session, review, live_updates):
        provider = FakeProvider(error=provider_failure())

        with pytest.raises(ProviderError):
            PullRequestSyncer(provider, live_updates).sync_review(session, review)

        review = reload_review(session, review)
        assert review.sync_status == SyncStatus.FAILED.value
        assert review.last_synced_at is None
        assert sync_statuses(live_updates) == ["syncing", "failed"]

    def test_unexpected_errors_surface_as_provider_errors(self, session, review, live_updates):
        provider = FakeProvider(error=RuntimeError("connection reset"))

        with pytest.raises(ProviderError) as exc_info:
            PullRequestSyncer(provider, live_updates).sync_review(session, review)

        assert "connection reset" in exc_info.value.message

    def test_background_sync_swallows_failures(self, session, review, live_updates):
        provider = FakeProvider(error=provider_failure())

        result = PullRequestSyncer(provider, live_updates).sync_review(
            session, review, raise_errors=False
        )

        assert result.sync_status == SyncStatus.FAILED.value

    def test_failed_review_can_sync_again(self, session, review, live_updates):
        review.sync_status = SyncStatus.FAILED.value
        review.save(session)

        PullRequestSyncer(FakeProvider(), live_updates).sync_review(session, review)

        assert reload_review(session, review).sync_status == SyncStatus.COMPLETED.value

    def test_ci_failure_does_not_fail_the_sync(self, session, review, live_updates):
        provider = FakeProvider(ci_errors={review.external_pr_number: provider_failure("CI down")})

        PullRequestSyncer(provider, live_updates).sync_review(session, review)

        review = reload_review(session, review)
        assert review.sync_status == SyncStatus.COMPLETED.value
        assert review.ci_status is None

    def test_broadcast_failures_are_tolerated(self, session, review):
        PullRequestSyncer(FakeProvider(), FailingBroadcaster()).sync_review(session, review)

        assert reload_review(session, review).sync_status == SyncStatus.COMPLETED.value


class TestSyncRepository:
    def test_upserts_listed_prs_and_archives_missing_ones(
        self, session, user, repository, live_updates
    ):
        stale = make_review(session, user, repository, 2)
        provider = FakeProvider(items=[pr_data(1)])

        result = PullRequestSyncer(provider, live_updates).sync_repository(session, repository)

        assert result.status == SUCCESS
        assert result.synced == 1
        assert result.closed == 1

        session.expire_all()
        stale = session.get(PullRequestReview, stale.id)
        assert stale.status == ReviewStatus.ARCHIVED.value
        assert session.get(PullRequest, stale.pull_request_id).state == "closed"

        new_review = PullRequestReview.find_by_number(session, repository.id, 1)
        assert new_review.status == ReviewStatus.IN_PROGRESS.value
        assert new_review.pr_title == "Change #1"
        assert new_review.pull_request_id is not None

        reviews = PullRequestReview.for_repository(session, repository.id)
        assert sorted(r.external_pr_number for r in reviews) == [1, 2]

    def test_resync_does_not_duplicate(self, session, repository, live_updates):
        provider = FakeProvider(items=[pr_data(1), pr_data(3, state="merged")])
        syncer = PullRequestSyncer(provider, live_updates)

        syncer.sync_repository(session, repository)
        syncer.sync_repository(session, repository)

        assert len(PullRequestReview.for_repository(session, repository.id)) == 2
        assert len(PullRequest.for_repository(session, repository.id)) == 2
        merged = PullRequestReview.find_by_number(session, repository.id, 3)
        assert merged.status == ReviewStatus.ARCHIVED.value

    def test_existing_review_keeps_its_status(self, session, user, repository, live_updates):
        review = make_review(session, user, repository, 1)
        review.mark_as_completed(session)

        PullRequestSyncer(FakeProvider(items=[pr_data(1)]), live_updates).sync_repository(
            session, repository
        )

        assert reload_review(session, review).status == ReviewStatus.COMPLETED.value

    def test_empty_listing_closes_nothing(self, session, repository, review, live_updates):
        result = PullRequestSyncer(FakeProvider(), live_updates).sync_repository(
            session, repository
        )

        assert result.status == NO_PRS
        assert result.closed == 0
        assert reload_review(session, review).status == ReviewStatus.IN_PROGRESS.value

    def test_listing_failure_reports_error(self, session, repository, live_updates):
        provider = FakeProvider(list_error=provider_failure("rate limited"))

        result = PullRequestSyncer(provider, live_updates).sync_repository(session, repository)

        assert result.status == ERROR
        assert result.errors == ["rate limited"]

    def test_one_bad_pr_gives_partial_success(self, session, repository, live_updates):
        provider = FakeProvider(
            items=[pr_data(4), pr_data(5)],
            ci_errors={5: RuntimeError("unexpected payload")},
        )

        result = PullRequestSyncer(provider, live_updates).sync_repository(session, repository)

        assert result.status == PARTIAL_SUCCESS
        assert result.synced == 1
        assert len(result.errors) == 1
        assert "#5" in result.errors[0]
        assert PullRequestReview.find_by_number(session, repository.id, 4) is not None
        assert PullRequestReview.find_by_number(session, repository.id, 5) is None

import pytest

from prpal.core.errors import ConflictError, ValidationError
from prpal.models.pull_request import PullRequest
from prpal.models.pull_request_review import ReviewStatus
from prpal.models.repository import Repository
from prpal.services.reviews import create_review, update_review


def test_create_review_links_a_new_pull_request(session, user, repository):
    review = create_review(session, user, repository, "42", {"title": "Add caching"})

    assert review.status == ReviewStatus.IN_PROGRESS.value
    assert review.external_pr_number == 42
    assert review.pr_title == "Add caching"
    assert review.pr_url == "https://github.com/acme/widgets/pull/42"

    pull_request = session.get(PullRequest, review.pull_request_id)
    assert pull_request.external_pr_number == 42
    assert pull_request.state == "open"
    assert pull_request.author == "unknown"


def test_create_review_reuses_an_existing_pull_request(session, user, repository):
    existing = PullRequest(
        repository_id=repository.id,
        external_pr_number=7,
        title="Existing",
        url="https://github.com/acme/widgets/pull/7",
        state="merged",
        author="octocat",
    ).save(session)

    review = create_review(session, user, repository, 7)

    assert review.pull_request_id == existing.id
    assert session.get(PullRequest, existing.id).state == "merged"


@pytest.mark.parametrize("number", [None, "", "abc", 0, -3])
def test_create_review_rejects_bad_pr_numbers(session, user, repository, number):
    with pytest.raises(ValidationError) as exc_info:
        create_review(session, user, repository, number)
    assert "external_pr_number" in exc_info.value.errors


def test_create_review_requires_the_users_repository(session, user, other_user):
    foreign = Repository(owner="other", name="repo", user_id=other_user.id).save(session)
    with pytest.raises(ValidationError):
        create_review(session, user, foreign, 1)


def test_duplicate_review_conflicts(session, user, repository, review):
    with pytest.raises(ConflictError):
        create_review(session, user, repository, review.external_pr_number)


def test_update_review_changes_editable_fields(session, review):
    update_review(
        session,
        review,
        {"pr_title": "Renamed", "llm_context_summary": "Focus on SQL", "status": "archived"},
    )
    assert review.pr_title == "Renamed"
    assert review.llm_context_summary == "Focus on SQL"
    assert review.status == ReviewStatus.IN_PROGRESS.value


def test_update_review_rejects_blank_title(session, review):
    with pytest.raises(ValidationError) as exc_info:
        update_review(session, review, {"pr_title": "  "})
    assert exc_info.value.errors == {"pr_title": ["can't be blank"]}

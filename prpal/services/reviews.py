from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from prpal.core.errors import ConflictError, ValidationError
from prpal.models.pull_request import PullRequest, PullRequestState
from prpal.models.pull_request_review import PullRequestReview, ReviewStatus
from prpal.models.repository import Repository
from prpal.models.user import User
from prpal.utils.logger import logger

EDITABLE_FIELDS = ("pr_title", "pr_url", "llm_context_summary")


def _parse_pr_number(value: Any) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError.for_field("external_pr_number", "can't be blank")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError.for_field("external_pr_number", "is not a number")
    if number <= 0:
        raise ValidationError.for_field("external_pr_number", "must be greater than 0")
    return number


def create_review(
    session: Session,
    user: User,
    repository: Repository,
    external_pr_number: Any,
    metadata: Optional[Dict[str, Any]] = None,
) -> PullRequestReview:
    """Create a review, finding or creating the PullRequest it points at.

    ``metadata`` may carry ``title``, ``url``, ``body``, ``state``, ``author``
    and ``llm_context_summary``. Missing PR fields fall back to
    ``state="open"`` and ``author="unknown"``.
    """
    metadata = metadata or {}
    number = _parse_pr_number(external_pr_number)
    if repository is None or repository.user_id != user.id:
        raise ValidationError.for_field("repository", "must exist")

    if PullRequestReview.find_by_number(session, repository.id, number) is not None:
        raise ConflictError(
            f"A review for {repository.full_name}#{number} already exists"
        )

    title = (metadata.get("title") or "").strip() or f"PR #{number}"
    url = (metadata.get("url") or "").strip() or f"{repository.github_url}/pull/{number}"

    try:
        pull_request = PullRequest.find_or_create(
            session,
            repository.id,
            number,
            title=title,
            url=url,
            body=metadata.get("body"),
            state=metadata.get("state") or PullRequestState.OPEN.value,
            author=metadata.get("author") or "unknown",
        )
        review = PullRequestReview(
            user_id=user.id,
            repository_id=repository.id,
            pull_request_id=pull_request.id,
            external_pr_number=number,
            pr_title=title,
            pr_url=url,
            llm_context_summary=metadata.get("llm_context_summary"),
            status=ReviewStatus.IN_PROGRESS.value,
        ).save(session)
    except IntegrityError:
        session.rollback()
        raise ConflictError(
            f"A review for {repository.full_name}#{number} already exists"
        )

    logger.info(f"Created review {review.id} for {repository.full_name}#{number}")
    return review


def update_review(
    session: Session, review: PullRequestReview, changes: Dict[str, Any]
) -> PullRequestReview:
    errors = {}
    for field in ("pr_title", "pr_url"):
        if field in changes and not (changes[field] or "").strip():
            errors[field] = ["can't be blank"]
    if errors:
        raise ValidationError(errors)

    for field in EDITABLE_FIELDS:
        if field in changes:
            setattr(review, field, changes[field])
    return review.save(session)

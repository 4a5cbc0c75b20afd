from datetime import datetime
from typing import Any, Dict, List, Optional

from prpal.core.errors import ProviderError
from prpal.data_providers.base import PullRequestData, PullRequestDataProvider
from prpal.events.broadcaster import Broadcaster
from prpal.llms.llm_interface import LLMCompletionClient
from prpal.models.pull_request_review import PullRequestReview
from prpal.models.repository import Repository
from prpal.models.user import User
from prpal.services.reviews import create_review


def make_review(session, user: User, repository: Repository, number: int, **metadata):
    return create_review(session, user, repository, number, metadata or None)


def pr_data(number: int, state: str = "open", title: Optional[str] = None) -> PullRequestData:
    return PullRequestData(
        number=number,
        title=title or f"Change #{number}",
        body="Body",
        state=state,
        author="octocat",
        url=f"https://github.com/acme/widgets/pull/{number}",
        created_at=datetime(2024, 1, 1),
        updated_at=datetime(2024, 1, 2),
        head_sha="abc123",
    )


class FakeProvider(PullRequestDataProvider):
    name = "fake"

    def __init__(
        self,
        items: Optional[List[PullRequestData]] = None,
        error: Optional[Exception] = None,
        list_error: Optional[Exception] = None,
        ci: Optional[Dict[str, Any]] = None,
        ci_errors: Optional[Dict[int, Exception]] = None,
        diff: str = "diff --git a/app.py b/app.py\n+print('hi')\n",
    ):
        self.items = items or []
        self.error = error
        self.list_error = list_error
        self.ci = ci
        self.ci_errors = ci_errors or {}
        self.diff = diff
        self.calls: List[tuple] = []

    def fetch_pr_details(self, owner, name, pr_number, user):
        self.calls.append(("details", owner, name, pr_number))
        if self.error:
            raise self.error
        return pr_data(pr_number, title="Updated title")

    def fetch_pr_diff(self, owner, name, pr_number, user):
        self.calls.append(("diff", owner, name, pr_number))
        if self.error:
            raise self.error
        return self.diff

    def fetch_repository_pull_requests(self, repository, user):
        self.calls.append(("list", repository.full_name))
        if self.list_error:
            raise self.list_error
        return list(self.items)

    def fetch_pr_ci_statuses(self, owner, name, pr_number, user):
        if pr_number in self.ci_errors:
            raise self.ci_errors[pr_number]
        return self.ci


class FakeLLMClient(LLMCompletionClient):
    def __init__(self, reply: str = "Looks good to me.", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[dict] = []

    def complete(self, provider, model, api_key, prompt):
        self.calls.append(
            {"provider": provider, "model": model, "api_key": api_key, "prompt": prompt}
        )
        if self.error:
            raise self.error
        return self.reply


class RecordingBroadcaster(Broadcaster):
    def __init__(self):
        self.published: List[tuple] = []

    def _publish(self, channel, event, payload):
        self.published.append((channel, event, payload))

    def events(self, name: str) -> List[dict]:
        return [payload for _, event, payload in self.published if event == name]


class FailingBroadcaster(Broadcaster):
    def _publish(self, channel, event, payload):
        raise ConnectionError("redis is down")


def provider_failure(message: str = "GitHub is unavailable") -> ProviderError:
    return ProviderError(message)


def reload_review(session, review: PullRequestReview) -> PullRequestReview:
    session.expire_all()
    return session.get(PullRequestReview, review.id)

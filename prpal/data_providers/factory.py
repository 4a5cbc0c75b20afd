import enum
from typing import Optional

from prpal.config import settings
from prpal.data_providers.base import PullRequestDataProvider
from prpal.data_providers.dummy import DummyPullRequestDataProvider
from prpal.data_providers.github import GitHubPullRequestDataProvider
from prpal.models.user import User


class ProviderKind(str, enum.Enum):
    DUMMY = "dummy"
    GITHUB = "github"


def dummy_mode_forced() -> bool:
    return settings.FORCE_DUMMY_DATA or settings.PULL_REQUEST_DATA_PROVIDER == "dummy"


def resolve_provider_kind(has_token: bool, force_dummy: bool) -> ProviderKind:
    """GitHub only when the user has a token and dummy mode isn't forced."""
    if has_token and not force_dummy:
        return ProviderKind.GITHUB
    return ProviderKind.DUMMY


def build_provider(kind: ProviderKind) -> PullRequestDataProvider:
    if kind == ProviderKind.GITHUB:
        return GitHubPullRequestDataProvider()
    return DummyPullRequestDataProvider()


def provider_for(
    user: Optional[User], force_dummy: Optional[bool] = None
) -> PullRequestDataProvider:
    if force_dummy is None:
        force_dummy = dummy_mode_forced()
    has_token = user is not None and user.github_token_configured()
    return build_provider(resolve_provider_kind(has_token, force_dummy))

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import requests

from prpal.config import settings
from prpal.core.errors import ProviderError
from prpal.data_providers.base import PullRequestData, PullRequestDataProvider
from prpal.models.base_model import utcnow
from prpal.models.repository import Repository
from prpal.models.user import User
from prpal.utils.logger import logger

RECENTLY_CLOSED_WINDOW = timedelta(days=30)
REQUEST_TIMEOUT = 30


class GitHubError(ProviderError):
    default_message = "GitHub API error"


class GitHubAuthenticationError(GitHubError):
    default_message = "Invalid GitHub token or insufficient permissions"


class GitHubNotFoundError(GitHubError):
    default_message = "Not found on GitHub"


class GitHubRateLimitError(GitHubError):
    default_message = "GitHub API rate limit exceeded"


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    # GitHub returns e.g. 2024-06-01T12:00:00Z; store naive UTC.
    return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)


def _to_pull_request_data(pr: Dict[str, Any]) -> PullRequestData:
    state = pr.get("state") or "open"
    if state == "closed" and pr.get("merged_at"):
        state = "merged"
    return PullRequestData(
        number=pr["number"],
        title=pr.get("title") or f"PR #{pr['number']}",
        body=pr.get("body"),
        state=state,
        author=(pr.get("user") or {}).get("login") or "unknown",
        url=pr.get("html_url") or "",
        created_at=_parse_timestamp(pr.get("created_at")),
        updated_at=_parse_timestamp(pr.get("updated_at")),
        head_sha=(pr.get("head") or {}).get("sha"),
    )


class GitHubPullRequestDataProvider(PullRequestDataProvider):
    """Reads pull requests from the GitHub REST API with the user's token."""

    name = "github"

    def __init__(self, api_base: Optional[str] = None):
        self.api_base = (api_base or settings.GITHUB_API_BASE).rstrip("/")

    def _headers(self, user: User, accept: str = "application/vnd.github.v3+json") -> Dict[str, str]:
        token = user.get_github_token()
        if not token:
            raise GitHubAuthenticationError("No GitHub token configured for user")
        return {
            "Authorization": f"Bearer {token}",
            "Accept": accept,
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _request(
        self,
        user: User,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        accept: str = "application/vnd.github.v3+json",
    ) -> requests.Response:
        url = f"{self.api_base}{path}"
        try:
            response = requests.get(
                url,
                headers=self._headers(user, accept),
                params=params,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"GitHub request to {path} failed: {e}")
            raise GitHubError(f"GitHub API error: {e}")

        if response.status_code in (401, 403):
            if response.headers.get("X-RateLimit-Remaining") == "0":
                raise GitHubRateLimitError()
            raise GitHubAuthenticationError()
        if response.status_code == 404:
            raise GitHubNotFoundError(f"{path} not found on GitHub")
        if response.status_code == 429:
            raise GitHubRateLimitError()
        if response.status_code >= 400:
            logger.error(
                f"GitHub request to {path} failed: {response.status_code} - {response.text}"
            )
            raise GitHubError(f"GitHub API error: HTTP {response.status_code}")
        return response

    def fetch_pr_details(
        self, owner: str, name: str, pr_number: int, user: User
    ) -> PullRequestData:
        response = self._request(user, f"/repos/{owner}/{name}/pulls/{pr_number}")
        return _to_pull_request_data(response.json())

    def fetch_pr_diff(self, owner: str, name: str, pr_number: int, user: User) -> str:
        response = self._request(
            user,
            f"/repos/{owner}/{name}/pulls/{pr_number}",
            accept="application/vnd.github.v3.diff",
        )
        return response.text

    def fetch_repository_pull_requests(
        self, repository: Repository, user: User
    ) -> List[PullRequestData]:
        path = f"/repos/{repository.owner}/{repository.name}/pulls"
        logger.info(f"Fetching PRs for {repository.full_name}")
        open_prs = self._request(user, path, {"state": "open", "per_page": 100}).json()
        closed_prs = self._request(
            user,
            path,
            {"state": "closed", "sort": "updated", "direction": "desc", "per_page": 100},
        ).json()

        cutoff = utcnow() - RECENTLY_CLOSED_WINDOW
        pull_requests = [_to_pull_request_data(pr) for pr in open_prs]
        for pr in closed_prs:
            data = _to_pull_request_data(pr)
            if data.updated_at and data.updated_at > cutoff:
                pull_requests.append(data)
        return pull_requests

    def fetch_pr_ci_statuses(
        self, owner: str, name: str, pr_number: int, user: User
    ) -> Optional[Dict[str, Any]]:
        sha = self.fetch_pr_details(owner, name, pr_number, user).head_sha
        if not sha:
            return None

        combined = self._request(user, f"/repos/{owner}/{name}/commits/{sha}/status").json()
        statuses = [
            {
                "type": "status",
                "context": status.get("context"),
                "state": status.get("state"),
                "description": status.get("description"),
                "target_url": status.get("target_url"),
            }
            for status in combined.get("statuses", [])
        ]

        runs = self._request(user, f"/repos/{owner}/{name}/commits/{sha}/check-runs").json()
        check_runs = [
            {
                "type": "check_run",
                "name": run.get("name"),
                "status": run.get("status"),
                "conclusion": run.get("conclusion"),
                "details_url": run.get("details_url"),
                "output_title": (run.get("output") or {}).get("title"),
                "output_summary": (run.get("output") or {}).get("summary"),
            }
            for run in runs.get("check_runs", [])
        ]

        return {"sha": sha, "statuses": statuses, "check_runs": check_runs}

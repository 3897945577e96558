"""GitHub access for the review bot: diff provider and comment publisher."""

import functools
import logging
from dataclasses import dataclass

import requests
import requests.exceptions
from github import Auth, Github
from github.GithubException import GithubException
from github.PullRequest import PullRequest

from config import require_env, validate_repo, with_retry
from errors import TransportError

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
REQUEST_TIMEOUT = 30

_TOKEN_HINT = "Create one at: https://github.com/settings/tokens"


@dataclass
class PRMetadata:
    """The pull request fields the bot reports on."""

    number: int
    title: str
    author: str
    draft: bool
    state: str
    base_branch: str
    head_branch: str


def _github_token() -> str:
    return require_env("GITHUB_TOKEN", _TOKEN_HINT)


def _api_message(e: GithubException) -> str:
    if isinstance(e.data, dict) and "message" in e.data:
        return e.data["message"]
    return str(e)


@functools.lru_cache(maxsize=1)
def get_github_client() -> Github:
    """One authenticated PyGithub client per process."""
    return Github(auth=Auth.Token(_github_token()))


def _get_pull(repo: str, pr_number: int) -> PullRequest:
    """Look up a PR; 404 becomes ``ValueError``, other errors ``TransportError``."""
    repo = validate_repo(repo)
    try:
        return get_github_client().get_repo(repo).get_pull(pr_number)
    except GithubException as e:
        if e.status == 404:
            raise ValueError(f"PR #{pr_number} not found in {repo}") from e
        raise TransportError(f"GitHub API error: {_api_message(e)}") from e


def fetch_pr_metadata(repo: str, pr_number: int) -> PRMetadata:
    pr = _get_pull(repo, pr_number)
    return PRMetadata(
        number=pr.number,
        title=pr.title,
        author=pr.user.login if pr.user else "unknown",
        draft=pr.draft,
        state=pr.state,
        base_branch=pr.base.ref,
        head_branch=pr.head.ref,
    )


@with_retry(
    max_retries=3,
    base_delay=1.0,
    retryable=(
        requests.exceptions.ConnectionError,
        requests.exceptions.Timeout,
    ),
)
def _download_diff(repo: str, pr_number: int) -> requests.Response:
    return requests.get(
        f"{GITHUB_API_URL}/repos/{repo}/pulls/{pr_number}",
        headers={
            "Authorization": f"token {_github_token()}",
            "Accept": DIFF_MEDIA_TYPE,
        },
        timeout=REQUEST_TIMEOUT,
    )


def fetch_raw_diff(repo: str, pr_number: int) -> str:
    """
    Download the whole PR as one unified diff.

    PyGithub has no raw-diff call, so this goes to the REST API with the
    diff media type. Connection errors and timeouts are retried.

    Returns:
        The diff text, possibly empty

    Raises:
        ValueError: If the PR does not exist
        TransportError: If the download still fails after retries
    """
    repo = validate_repo(repo)

    try:
        response = _download_diff(repo, pr_number)
        if response.status_code == 404:
            raise ValueError(f"PR #{pr_number} not found in {repo}")
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise TransportError(f"Could not download diff for PR #{pr_number}: {e}") from e

    logger.info("Fetched diff for PR #%d (%d characters)", pr_number, len(response.text))
    return response.text


def post_pr_comment(repo: str, pr_number: int, body: str) -> int:
    """
    Add a conversation comment (markdown) to a PR and return its id.

    Raises:
        TransportError: If GitHub rejects the comment
    """
    pr = _get_pull(repo, pr_number)

    try:
        comment = pr.create_issue_comment(body)
    except GithubException as e:
        raise TransportError(f"Failed to post comment: {_api_message(e)}") from e

    logger.info("Posted comment %d on PR #%d", comment.id, pr_number)
    return comment.id

"""
Pull request event handling - connects GitHub and the review pipeline.

Orchestrates one review cycle:
1. Fetch the PR diff
2. Run all analyzers (scope, security, behavior, tests)
3. Aggregate results into a verdict
4. Post one comment with the verdict

On any failure a generic error notice is posted instead of a verdict.
"""

import logging
from typing import Callable

import config as _config  # noqa: F401 - loads .env and logging on import
from aggregator import Aggregator, create_aggregator
from comments import ERROR_NOTICE, render_review_comment
from diff_parser import parse_diff
from github_client import fetch_raw_diff, post_pr_comment
from models import ReviewResult

logger = logging.getLogger(__name__)

# pull_request actions that trigger a review
REVIEWABLE_ACTIONS = frozenset({"opened", "reopened", "synchronize", "ready_for_review"})

FetchDiff = Callable[[str, int], str]
PostComment = Callable[[str, int, str], int]


def handle_pull_request(
    repo: str,
    pr_number: int,
    aggregator: Aggregator | None = None,
    fetch_diff: FetchDiff = fetch_raw_diff,
    post_comment: PostComment = post_pr_comment,
) -> ReviewResult | None:
    """
    Review one pull request and post the result.

    Args:
        repo: Repository in "owner/repo" format
        pr_number: Pull request number
        aggregator: Analyzer pipeline (defaults to the configured one)
        fetch_diff: Diff provider, ``(repo, pr_number) -> raw diff``
        post_comment: Comment publisher, ``(repo, pr_number, body) -> id``

    Returns:
        The ReviewResult that was posted, or None when the diff is empty

    Raises:
        Whatever failed the cycle, after the error notice has been posted
    """
    try:
        logger.info("📥 Fetching diff for %s PR #%d...", repo, pr_number)
        raw_diff = fetch_diff(repo, pr_number)

        if not raw_diff or not raw_diff.strip():
            logger.warning("No diff found for PR #%d, nothing to review", pr_number)
            return None

        diff = parse_diff(raw_diff)
        result = (aggregator or create_aggregator()).aggregate(diff)

        logger.info("📝 Posting %s review for PR #%d", result.verdict.value, pr_number)
        post_comment(repo, pr_number, render_review_comment(result))

        logger.info("✅ Review complete for PR #%d", pr_number)
        return result

    except Exception as e:
        logger.error("❌ Failed to review PR #%d: %s", pr_number, e)
        try:
            post_comment(repo, pr_number, ERROR_NOTICE)
        except Exception as notice_error:
            logger.error("   Could not post error notice: %s", notice_error)
        raise


def handle_event(
    event_name: str,
    payload: dict,
    **kwargs,
) -> ReviewResult | None:
    """
    Dispatch a GitHub webhook event.

    Only ``pull_request`` events with a reviewable action on a non-draft
    PR start a review; everything else is ignored. Extra keyword
    arguments are passed through to ``handle_pull_request``.
    """
    action = payload.get("action")
    if event_name != "pull_request" or action not in REVIEWABLE_ACTIONS:
        logger.debug("Ignoring %s event (action=%s)", event_name, action)
        return None

    pr = payload["pull_request"]
    repo = payload["repository"]["full_name"]

    if pr.get("draft"):
        logger.info("Skipping draft PR #%d in %s", pr["number"], repo)
        return None

    logger.info("PR #%d %s in %s", pr["number"], action, repo)
    return handle_pull_request(repo, pr["number"], **kwargs)

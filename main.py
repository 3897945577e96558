import argparse
import logging
import sys
from pathlib import Path

from github.GithubException import GithubException

import config as _config  # noqa: F401 - loads .env and logging on import
from aggregator import create_aggregator
from comments import render_review_comment
from diff_parser import parse_diff
from errors import AnalyzerFailure, MalformedDiffError, TransportError
from github_client import fetch_pr_metadata, fetch_raw_diff
from webhook import handle_pull_request

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prverdict",
        description="Review a pull request diff and post a single verdict comment.",
    )
    parser.add_argument("repo", nargs="?", help="Repository in 'owner/repo' format")
    parser.add_argument("pr_number", nargs="?", type=int, help="Pull request number")
    parser.add_argument(
        "--diff-file",
        type=Path,
        help="Review a local unified diff instead of a GitHub PR",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the comment instead of posting it",
    )
    return parser


def review_text(raw_diff: str) -> str:
    """Run the full pipeline on diff text and return the rendered comment."""
    result = create_aggregator().aggregate(parse_diff(raw_diff))
    return render_review_comment(result)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.diff_file is None and (args.repo is None or args.pr_number is None):
        parser.error("either REPO PR_NUMBER or --diff-file is required")

    try:
        if args.diff_file is not None:
            print(review_text(args.diff_file.read_text(encoding="utf-8")))
            return 0

        metadata = fetch_pr_metadata(args.repo, args.pr_number)
        logger.info("PR: %s by %s", metadata.title, metadata.author)

        if args.dry_run:
            raw_diff = fetch_raw_diff(args.repo, args.pr_number)
            if not raw_diff.strip():
                print("Nothing to review: empty diff")
                return 0
            print(review_text(raw_diff))
            return 0

        result = handle_pull_request(args.repo, args.pr_number)
        if result is None:
            print("Nothing to review: empty diff")
        else:
            print(f"{result.verdict.value}: {result.summary}")
        return 0

    except (MalformedDiffError, AnalyzerFailure) as e:
        logger.error("Review failed: %s", e)
        return 1
    except (ValueError, OSError) as e:
        logger.error("Configuration error: %s", e)
        return 1
    except (TransportError, GithubException) as e:
        logger.error("API error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())

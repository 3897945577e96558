"""Environment, logging and shared helpers for PRVerdict."""

import functools
import logging
import os
import re
import time

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Environment & logging (initialised once on first import)
# ---------------------------------------------------------------------------
load_dotenv()


def env_flag(name: str, default: bool = False) -> bool:
    """Read a true/false environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
# Canned LLM responses instead of API calls
USE_MOCK: bool = env_flag("USE_MOCK")
# Swap the heuristic security analyzer for the Gemini one
USE_LLM_SECURITY: bool = env_flag("USE_LLM_SECURITY")
DEFAULT_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite")

_REPO_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")


def validate_repo(repo: str) -> str:
    """Return *repo* if it looks like 'owner/repo', else raise ``ValueError``."""
    if not _REPO_PATTERN.match(repo):
        raise ValueError(
            f"Invalid repo format: {repo!r}. Expected 'owner/repo' "
            "(e.g. 'octocat/hello-world')."
        )
    return repo


def require_env(name: str, hint: str = "") -> str:
    """Return a required environment variable or raise ``ValueError``."""
    value = os.getenv(name)
    if not value:
        message = f"{name} not found. Set it in .env file."
        raise ValueError(f"{message}\n{hint}" if hint else message)
    return value


# ---------------------------------------------------------------------------
# Retry decorator
# ---------------------------------------------------------------------------
def with_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    retryable: tuple[type[Exception], ...] = (Exception,),
):
    """Retry the decorated call on *retryable* errors with exponential back-off.

    Makes at most *max_retries* attempts and re-raises the last error.
    """
    delays = [base_delay * (2**n) for n in range(max_retries - 1)]

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for attempt, delay in enumerate(delays, start=1):
                try:
                    return func(*args, **kwargs)
                except retryable as exc:
                    logger.warning(
                        "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                        func.__name__,
                        attempt,
                        max_retries,
                        exc,
                        delay,
                    )
                    time.sleep(delay)
            return func(*args, **kwargs)

        return wrapper

    return decorator

"""GitHub client and HTTP session construction.

Both the PyGithub client and the raw ``requests`` session share PyGithub's
``GithubRetry`` policy, which sleeps until the primary rate-limit window resets
and backs off on secondary limits and server errors.
"""

from __future__ import annotations

import logging
import re
from typing import Final

import requests
from github import Auth, Github, GithubException, GithubRetry
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import ConfigurationError

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_API_URL: Final[str] = "https://api.github.com"
GITHUB_JSON: Final[str] = "application/vnd.github+json"
API_VERSION: Final[str] = "2022-11-28"

_HOSTNAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9](?:[A-Za-z0-9.-]*[A-Za-z0-9])?(?::\d+)?")


def api_url(hostname: str = "") -> str:
    """REST base URL for github.com or a GitHub Enterprise Server host."""
    if not hostname:
        return DEFAULT_API_URL
    hostname = hostname.strip().removeprefix("https://").rstrip("/")
    if not _HOSTNAME_PATTERN.fullmatch(hostname):
        msg = f"Invalid enterprise hostname: {hostname!r}"
        raise ConfigurationError(msg)
    return f"https://{hostname}/api/v3"


def _retry_policy(max_retries: int) -> GithubRetry:
    return GithubRetry(
        total=max_retries,
        allowed_methods=Retry.DEFAULT_ALLOWED_METHODS | {"GET", "POST", "PATCH"},
    )


def get_client(token: str, hostname: str = "", *, max_retries: int = 10) -> Github:
    """Get a GitHub client for the given host using the token.

    Raises:
        ConfigurationError: If the client cannot be constructed
    """
    base_url = api_url(hostname)
    try:
        return Github(auth=Auth.Token(token), base_url=base_url, retry=_retry_policy(max_retries), per_page=100)
    except (AssertionError, ValueError) as e:
        msg = f"Unable to create GitHub client for {base_url}: {e}"
        raise ConfigurationError(msg) from e


def get_session(token: str, *, max_retries: int = 10) -> requests.Session:
    """Get a ``requests`` session authenticated with the token, for raw asset traffic."""
    session = requests.Session()
    session.headers.update(
        {
            "Authorization": f"Bearer {token}",
            "Accept": GITHUB_JSON,
            "X-GitHub-Api-Version": API_VERSION,
        }
    )
    adapter = HTTPAdapter(max_retries=_retry_policy(max_retries))
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def is_already_exists_error(exc: GithubException) -> bool:
    """Check if a GithubException is a 422 'already_exists' validation error."""
    if exc.status != 422 or not isinstance(exc.data, dict):
        return False
    errors: object = exc.data.get("errors")  # pyright: ignore[reportUnknownVariableType]
    if not isinstance(errors, list):
        return False
    return any(isinstance(e, dict) and e.get("code") == "already_exists" for e in errors)  # pyright: ignore[reportUnknownArgumentType,reportUnknownVariableType]


def sanitize_error(error: str, tokens: list[str | None]) -> str:
    """Remove tokens from an error message to prevent leakage."""
    result = error
    for token in tokens:
        if token:
            result = result.replace(token, "***TOKEN***")
    return result

"""Run the release migration over one or many repositories and report totals."""

from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING, Any, NamedTuple

from . import utils
from .exceptions import MigrationError
from .models import MigrationOutcome, RepositoryRef

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .config import MigrationConfig
    from .engine import ReleaseMigrator
    from .protocols import IssueCommenter

logger: logging.Logger = logging.getLogger(__name__)


class RepositoryPair(NamedTuple):
    source: RepositoryRef
    target: RepositoryRef


class TriggerIssue(NamedTuple):
    """The issue that triggered an automated run."""

    repo: RepositoryRef
    number: int


def plan_repositories(config: MigrationConfig) -> list[RepositoryPair]:
    """Resolve every repository of the run before any network activity.

    Raises:
        OSError: If the repository list file cannot be read
        ConfigurationError: If an entry cannot be resolved
    """
    entries = utils.read_repository_list(config.repository_list) if config.repository_list else [config.repository]
    return [RepositoryPair(config.source_ref(entry), config.target_ref(entry)) for entry in entries]


def migrate_repositories(migrator: ReleaseMigrator, pairs: list[RepositoryPair]) -> MigrationOutcome:
    """Migrate each repository in turn and sum the outcomes."""
    total = MigrationOutcome()
    for pair in pairs:
        print(f"Migrating releases: {pair.source} -> {pair.target}")
        try:
            outcome = migrator.migrate_repository(pair.source, pair.target)
        except MigrationError:
            logger.exception(f"Error migrating repository releases for {pair.source}")
            continue
        total += outcome
    return total


def format_summary_table(outcome: MigrationOutcome) -> str:
    return (
        "| No. of Releases | Succeeded | Failed |\n"
        "| --------------- | --------- | ------ |\n"
        f"| {outcome.releases_seen} | {outcome.releases_succeeded} | {outcome.releases_failed} |\n"
    )


def in_github_actions(environ: Mapping[str, str]) -> bool:
    return environ.get("CI") == "true" and environ.get("GITHUB_ACTIONS") == "true"


def parse_trigger_issue(payload: str) -> TriggerIssue | None:
    """Extract the triggering issue from a ``GITHUB_CONTEXT`` JSON payload.

    Accepts either a bare issue event or the full ``github`` context with the
    event under ``event``. Returns None when the payload names no issue.

    Raises:
        ValueError: If the payload is not valid JSON or lacks the repository
    """
    data: Any = json.loads(payload)
    if not isinstance(data, dict):
        msg = "GITHUB_CONTEXT is not a JSON object"
        raise ValueError(msg)
    event: dict[str, Any] = data.get("event") if isinstance(data.get("event"), dict) else data  # type: ignore[assignment]

    issue = event.get("issue") or {}
    number = issue.get("number") if isinstance(issue, dict) else None
    if not number:
        return None

    repository = event.get("repository")
    if not isinstance(repository, dict):
        msg = "GITHUB_CONTEXT has no repository"
        raise ValueError(msg)
    owner = (repository.get("owner") or {}).get("login", "")
    name = repository.get("name", "")
    if not owner or not name:
        msg = "GITHUB_CONTEXT repository has no owner or name"
        raise ValueError(msg)
    return TriggerIssue(RepositoryRef(owner, name), int(number))


def report(
    outcome: MigrationOutcome,
    commenter: IssueCommenter | None = None,
    environ: Mapping[str, str] | None = None,
) -> None:
    """Post the summary to the triggering issue in GitHub Actions, else print it."""
    env = environ if environ is not None else os.environ

    if not in_github_actions(env):
        print(f"Total Releases: {outcome.releases_seen}")
        print(f"Succeeded: {outcome.releases_succeeded}")
        print(f"Failed: {outcome.releases_failed}")
        return

    payload = env.get("GITHUB_CONTEXT", "")
    if not payload:
        logger.error("GITHUB_CONTEXT is not set or empty")
        return
    try:
        trigger = parse_trigger_issue(payload)
    except ValueError as e:
        logger.error(f"Error getting issue number: {e}")  # noqa: TRY400
        return
    if trigger is None or commenter is None:
        logger.debug("Not triggered by an issue event, skipping summary comment")
        return

    try:
        commenter.create_issue_comment(trigger.repo, trigger.number, format_summary_table(outcome))
    except MigrationError as e:
        logger.error(f"Error writing releases table to issue: {e}")  # noqa: TRY400

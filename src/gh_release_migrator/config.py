"""Run configuration.

A single immutable ``MigrationConfig`` is built once per process and passed
to every collaborator that needs tokens, organizations or paths.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

from . import utils
from .exceptions import ConfigurationError
from .models import RepositoryRef

if TYPE_CHECKING:
    from collections.abc import Mapping

logger: logging.Logger = logging.getLogger(__name__)

ENV_PREFIX: Final[str] = "GHMR_"
DEFAULT_SCRATCH_DIR: Final[str] = "tmp"
DEFAULT_MAX_RETRIES: Final[int] = 10


@dataclass(frozen=True)
class MigrationConfig:
    """Everything a migration run needs to know."""

    source_token: str
    target_token: str
    target_organization: str
    source_organization: str = ""
    source_hostname: str = ""
    repository: str = ""
    repository_list: str = ""
    mapping_file: str = ""
    scratch_dir: Path = Path(DEFAULT_SCRATCH_DIR)
    max_retries: int = DEFAULT_MAX_RETRIES

    def validate(self) -> None:
        """Check the configuration for contradictions before any network activity.

        Raises:
            ConfigurationError: If the configuration cannot drive a run
        """
        if self.repository and self.repository_list:
            msg = "Cannot specify both a repository and a repository list"
            raise ConfigurationError(msg)
        if not self.repository and not self.repository_list:
            msg = "No repository or repository list specified"
            raise ConfigurationError(msg)
        if self.repository and "/" not in self.repository and not self.source_organization:
            msg = "Source organization is required when specifying a repository"
            raise ConfigurationError(msg)
        if not self.target_organization:
            msg = "Target organization is required"
            raise ConfigurationError(msg)
        if not self.source_token:
            msg = "Source token is required"
            raise ConfigurationError(msg)
        if not self.target_token:
            msg = "Target token is required"
            raise ConfigurationError(msg)
        if self.max_retries < 0:
            msg = f"max_retries must not be negative, got {self.max_retries}"
            raise ConfigurationError(msg)

    def source_ref(self, entry: str) -> RepositoryRef:
        """Resolve a repository entry (``name`` or ``owner/name``) on the source host."""
        entry = entry.strip()
        if "/" in entry:
            owner, _, name = entry.partition("/")
        else:
            owner, name = self.source_organization, entry
        if not owner or not name or "/" in name:
            msg = f"Invalid repository '{entry}'. Expected 'name' or 'owner/name'"
            raise ConfigurationError(msg)
        return RepositoryRef(owner, name)

    def target_ref(self, entry: str) -> RepositoryRef:
        """The target repository keeps the short name under the target organization."""
        return RepositoryRef(self.target_organization, self.source_ref(entry).name)


def _env(environ: Mapping[str, str], name: str) -> str:
    return environ.get(f"{ENV_PREFIX}{name}", "").strip()


def resolve_token(
    explicit: str | None,
    pass_path: str | None,
    env_name: str,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Get a token from an explicit value, a pass path, or the environment, in that order."""
    if explicit:
        return explicit
    if pass_path:
        try:
            return utils.get_pass_value(pass_path)
        except (utils.PassError, ValueError) as e:
            msg = f"Could not read token from pass path '{pass_path}': {e}"
            raise ConfigurationError(msg) from e
    token = _env(environ if environ is not None else os.environ, env_name)
    if not token:
        logger.debug(f"No token found in {ENV_PREFIX}{env_name}")
    return token


def load_config(
    *,
    repository: str | None = None,
    repository_list: str | None = None,
    source_organization: str | None = None,
    target_organization: str | None = None,
    source_hostname: str | None = None,
    mapping_file: str | None = None,
    source_token: str | None = None,
    target_token: str | None = None,
    source_pass_token: str | None = None,
    target_pass_token: str | None = None,
    scratch_dir: str | None = None,
    max_retries: int | None = None,
    environ: Mapping[str, str] | None = None,
) -> MigrationConfig:
    """Build and validate a ``MigrationConfig``, falling back to ``GHMR_*`` environment variables.

    Raises:
        ConfigurationError: If the resulting configuration is invalid
    """
    env = environ if environ is not None else os.environ

    config = MigrationConfig(
        source_token=resolve_token(source_token, source_pass_token, "SOURCE_TOKEN", env),
        target_token=resolve_token(target_token, target_pass_token, "TARGET_TOKEN", env),
        target_organization=target_organization or _env(env, "TARGET_ORGANIZATION"),
        source_organization=source_organization or _env(env, "SOURCE_ORGANIZATION"),
        source_hostname=(source_hostname or _env(env, "SOURCE_HOSTNAME")).rstrip("/"),
        repository=repository or _env(env, "REPOSITORY"),
        repository_list=repository_list or _env(env, "REPOSITORY_LIST"),
        mapping_file=mapping_file or _env(env, "MAPPING_FILE"),
        scratch_dir=Path(scratch_dir or DEFAULT_SCRATCH_DIR),
        max_retries=DEFAULT_MAX_RETRIES if max_retries is None else max_retries,
    )
    config.validate()
    return config

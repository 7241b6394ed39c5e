"""
Command-line interface for the release migration tool.
"""

from __future__ import annotations

import argparse
import logging
import sys

from .body_builder import BodyMapping, default_body_transforms
from .config import load_config
from .directory import ReleaseDirectory
from .driver import migrate_repositories, plan_repositories, report
from .engine import ReleaseMigrator
from .exceptions import ConfigurationError
from .transfer import AssetTransfer
from .utils import setup_logging

logger: logging.Logger = logging.getLogger(__name__)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Migrate GitHub releases and their assets from a source repository to a target repository",
        epilog="Every option falls back to a GHMR_* environment variable, e.g. GHMR_SOURCE_TOKEN.",
    )

    repositories = parser.add_mutually_exclusive_group()
    _ = repositories.add_argument("--repository", "-r", help="Repository to migrate ('name' or 'owner/name')")
    _ = repositories.add_argument(
        "--repository-list", "-f", help="File with one repository ('name' or 'owner/name') per line"
    )

    _ = parser.add_argument("--source-organization", "-s", help="Organization that owns the source repositories")
    _ = parser.add_argument("--target-organization", "-t", help="Organization to migrate releases into")
    _ = parser.add_argument("--source-hostname", help="GitHub Enterprise Server hostname of the source")
    _ = parser.add_argument("--mapping-file", "-m", help="CSV file of 'source,target' handle/URL rewrites")

    _ = parser.add_argument("--source-pass-token", help="Path for the source token in the pass utility")
    _ = parser.add_argument("--target-pass-token", help="Path for the target token in the pass utility")

    _ = parser.add_argument("--scratch-dir", help="Directory for staging assets (default: tmp)")
    _ = parser.add_argument(
        "--max-retries", type=int, help="Retries for rate-limited or failing requests (default: 10)"
    )

    _ = parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    return parser.parse_args(argv)


def _load_mapping(path: str) -> BodyMapping:
    try:
        return BodyMapping.from_file(path)
    except (OSError, ValueError) as e:
        logger.warning(f"Error reading mapping file {path}, release bodies will not be rewritten: {e}")
        return BodyMapping()


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    verbose: bool = getattr(args, "verbose", False)
    setup_logging(verbose=verbose)

    try:
        config = load_config(
            repository=args.repository,
            repository_list=args.repository_list,
            source_organization=args.source_organization,
            target_organization=args.target_organization,
            source_hostname=args.source_hostname,
            mapping_file=args.mapping_file,
            source_pass_token=args.source_pass_token,
            target_pass_token=args.target_pass_token,
            scratch_dir=args.scratch_dir,
            max_retries=args.max_retries,
        )
        pairs = plan_repositories(config)
        source = ReleaseDirectory.connect(config.source_token, config.source_hostname, max_retries=config.max_retries)
        target = ReleaseDirectory.connect(config.target_token, max_retries=config.max_retries)
    except ConfigurationError as e:
        logger.error(f"Error: {e}")  # noqa: TRY400
        sys.exit(1)
    except OSError as e:
        logger.error(f"Error reading repository list: {e}")  # noqa: TRY400
        sys.exit(1)

    migrator = ReleaseMigrator(
        source,
        target,
        AssetTransfer(source, target, config.scratch_dir),
        default_body_transforms(_load_mapping(config.mapping_file)),
    )

    total = migrate_repositories(migrator, pairs)
    report(total, commenter=target)

"""Release reconciliation between a source and a target repository.

For one repository the engine:

1. Lists every source release and looks up the source's latest release.
2. For each source release, in listing order:
   a. Runs the body transforms (provenance, then mapping rewrite).
   b. Looks the tag up on the target and reuses the release if name and
      commitish also match. Drafts are not served by tag, so a draft is
      looked for in the full target listing instead.
   c. Otherwise creates it. A conflict means the tag appeared anyway, so the
      existing release is fetched and reused.
   d. Remembers the target counterpart of the source's latest release.
   e. Transfers each asset that the target release lacks by (name, size).
3. Marks the remembered release latest on the target.

Failures are contained at the smallest unit. A release that cannot be created
is counted and skipped. An asset that cannot be transferred is logged and
skipped. Nothing here raises past ``migrate_repository``, so re-running after
any failure only fills in what is still missing.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from .exceptions import ConflictError, MigrationError, NotFoundError, TransferError
from .matching import asset_exists, release_matches
from .models import MigrationOutcome

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .body_builder import BodyTransform
    from .models import Release, RepositoryRef
    from .protocols import ReleaseSource, ReleaseTarget
    from .transfer import AssetTransfer

logger: logging.Logger = logging.getLogger(__name__)


class ReleaseMigrator:
    """Migrates the releases of one repository at a time.

    Usage:
        source = ReleaseDirectory.connect(source_token, source_hostname)
        target = ReleaseDirectory.connect(target_token)
        migrator = ReleaseMigrator(source, target, AssetTransfer(source, target))
        outcome = migrator.migrate_repository(source_ref, target_ref)
    """

    _source: ReleaseSource
    _target: ReleaseTarget
    _transfer: AssetTransfer
    _body_transforms: list[BodyTransform]

    def __init__(
        self,
        source: ReleaseSource,
        target: ReleaseTarget,
        transfer: AssetTransfer,
        body_transforms: Sequence[BodyTransform] = (),
    ) -> None:
        self._source = source
        self._target = target
        self._transfer = transfer
        self._body_transforms = list(body_transforms)

    def migrate_repository(self, source_repo: RepositoryRef, target_repo: RepositoryRef) -> MigrationOutcome:
        """Reconcile every release of ``source_repo`` into ``target_repo``."""
        outcome = MigrationOutcome()

        print(f"Fetching releases from repository: {source_repo}")
        releases = self._list_source_releases(source_repo)
        latest_id = self._source_latest_id(source_repo)
        print(f"{len(releases)} releases fetched from {source_repo}")

        outcome.releases_seen = len(releases)
        new_latest: Release | None = None

        for release in releases:
            print(f"Creating release: {release.display_name}")
            prepared = self._prepare(release, source_repo)

            target_release = self._ensure_release(target_repo, prepared, outcome)
            if target_release is None:
                continue

            if latest_id and release.id == latest_id:
                new_latest = target_release

            self._transfer_assets(release, target_release, target_repo, outcome)

        self._mark_latest(target_repo, new_latest, latest_known=bool(latest_id))

        if outcome.releases_failed:
            print(f"{outcome.releases_failed} of {outcome.releases_seen} releases failed to create for {target_repo}")
        else:
            print(f"All releases created successfully for {target_repo}")
        logger.debug(
            f"{target_repo}: {outcome.releases_reused} releases reused, "
            f"{outcome.assets_transferred} assets transferred, {outcome.assets_skipped} skipped, "
            f"{outcome.assets_failed} failed"
        )
        return outcome

    def _list_source_releases(self, repo: RepositoryRef) -> list[Release]:
        try:
            return self._source.list_releases(repo)
        except TransferError as e:
            logger.error(f"Error fetching releases, continuing with the {len(e.partial)} already read: {e}")  # noqa: TRY400
            return list(e.partial)

    def _source_latest_id(self, repo: RepositoryRef) -> int:
        """Best effort: 0 when the source has no latest release or the lookup fails."""
        try:
            return self._source.get_latest_release(repo).id
        except (NotFoundError, TransferError) as e:
            logger.warning(f"Could not fetch latest release: {e}")
            return 0

    def _prepare(self, release: Release, source_repo: RepositoryRef) -> Release:
        """Copy of the source release with the body transforms applied.

        A transform that fails leaves the body as it was before that transform.
        """
        body = release.body
        for transform in self._body_transforms:
            try:
                body = transform(body, release, source_repo)
            except Exception as e:  # noqa: BLE001
                logger.warning(f"Error transforming body of release {release.display_name}: {e}")
        return dataclasses.replace(release, body=body)

    def _find_equivalent(self, repo: RepositoryRef, release: Release) -> Release | None:
        if release.draft:
            return self._find_draft(repo, release)
        try:
            existing = self._target.get_release_by_tag(repo, release.tag_name)
        except NotFoundError:
            return None
        except TransferError as e:
            logger.debug(f"Lookup of tag {release.tag_name} in {repo} failed, treating as missing: {e}")
            return None
        return existing if release_matches(existing, release) else None

    def _find_draft(self, repo: RepositoryRef, release: Release) -> Release | None:
        try:
            candidates = self._target.list_releases(repo)
        except TransferError as e:
            logger.debug(f"Listing releases of {repo} failed, searching {len(e.partial)} read so far: {e}")
            candidates = e.partial
        return next((r for r in candidates if r.draft and release_matches(r, release)), None)

    def _ensure_release(self, repo: RepositoryRef, release: Release, outcome: MigrationOutcome) -> Release | None:
        """The target release equivalent to ``release``, creating it if needed.

        Returns None, after logging, when no target release can be obtained.
        """
        existing = self._find_equivalent(repo, release)
        if existing is not None:
            logger.info(
                f"Release already exists with matching tag_name, name, and target_commitish: "
                f"{release.display_name}... skipping creation"
            )
            outcome.releases_reused += 1
            return existing

        try:
            return self._target.create_release(repo, release)
        except ConflictError:
            logger.info(f"Release already exists: {release.display_name}... fetching existing release")
        except TransferError as e:
            outcome.releases_failed += 1
            logger.warning(f"Error creating release {release.display_name} in {repo}: {e}")
            return None

        try:
            existing = self._target.get_release_by_tag(repo, release.tag_name)
        except MigrationError as e:
            logger.warning(f"Could not retrieve existing release {release.display_name} in {repo}: {e}")
            return None
        outcome.releases_reused += 1
        return existing

    def _transfer_assets(
        self,
        release: Release,
        target_release: Release,
        repo: RepositoryRef,
        outcome: MigrationOutcome,
    ) -> None:
        for asset in release.assets:
            if asset_exists(target_release, asset.name, asset.size):
                logger.info(f"Asset {asset.name} already exists in release {release.display_name}, skipping")
                outcome.assets_skipped += 1
                continue

            print(f"Transferring asset: {asset.name}")
            try:
                self._transfer.transfer(asset, target_release)
            except (MigrationError, OSError) as e:
                logger.warning(
                    f"Error transferring asset {asset.name} of release {release.display_name} to {repo}: {e}"
                )
                outcome.assets_failed += 1
                continue
            outcome.assets_transferred += 1

    def _mark_latest(self, repo: RepositoryRef, release: Release | None, *, latest_known: bool) -> None:
        if release is None:
            if latest_known:
                logger.warning(f"Could not mark latest release in {repo}: its source release was not migrated")
            return

        print(f"Marking release {release.display_name} as latest")
        try:
            self._target.edit_release(repo, release.id, {"make_latest": "true"})
        except TransferError as e:
            logger.warning(f"Error marking release {release.display_name} as latest in {repo}: {e}")

"""Data models for release migration between a source and a target host.

These are plain snapshots of what the host reports. The directory layer
converts PyGithub objects into them so the engine never touches the API
objects directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from github.GitRelease import GitRelease
    from github.GitReleaseAsset import GitReleaseAsset


@dataclass(frozen=True)
class RepositoryRef:
    """An (owner, name) pair on either the source or the target host."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass
class Asset:
    """A file attached to a release.

    Identity for matching is (name, size); content is never compared.
    """

    name: str
    size: int
    content_type: str = ""
    label: str = ""
    browser_download_url: str = ""
    id: int = 0

    @classmethod
    def from_github(cls, asset: GitReleaseAsset) -> Asset:
        return cls(
            name=asset.name,
            size=asset.size,
            content_type=asset.content_type or "",
            label=asset.label or "",
            browser_download_url=asset.browser_download_url,
            id=asset.id,
        )


@dataclass
class Release:
    """A release snapshot.

    Source releases are read once per run. Target releases are either created
    or reused and are only ever edited to set the latest flag.
    """

    tag_name: str
    name: str = ""
    target_commitish: str = ""
    body: str = ""
    draft: bool = False
    prerelease: bool = False
    id: int = 0
    created_at: datetime | None = None
    published_at: datetime | None = None
    author: str = ""
    html_url: str = ""
    upload_url: str = ""
    assets: list[Asset] = field(default_factory=list)

    @classmethod
    def from_github(cls, release: GitRelease) -> Release:
        author = release.author.login if release.author is not None else ""
        return cls(
            tag_name=release.tag_name,
            name=release.title or "",
            target_commitish=release.target_commitish or "",
            body=release.body or "",
            draft=release.draft,
            prerelease=release.prerelease,
            id=release.id,
            created_at=release.created_at,
            published_at=release.published_at,
            author=author,
            html_url=release.html_url,
            upload_url=release.upload_url,
            assets=[Asset.from_github(a) for a in release.assets],
        )

    @property
    def display_name(self) -> str:
        return self.name or self.tag_name


@dataclass
class MigrationOutcome:
    """Counters for one repository, or the sum over several."""

    releases_seen: int = 0
    releases_failed: int = 0
    releases_reused: int = 0
    assets_transferred: int = 0
    assets_skipped: int = 0
    assets_failed: int = 0

    @property
    def releases_succeeded(self) -> int:
        return self.releases_seen - self.releases_failed

    def __add__(self, other: MigrationOutcome) -> MigrationOutcome:
        return MigrationOutcome(
            releases_seen=self.releases_seen + other.releases_seen,
            releases_failed=self.releases_failed + other.releases_failed,
            releases_reused=self.releases_reused + other.releases_reused,
            assets_transferred=self.assets_transferred + other.assets_transferred,
            assets_skipped=self.assets_skipped + other.assets_skipped,
            assets_failed=self.assets_failed + other.assets_failed,
        )

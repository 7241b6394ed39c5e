"""Protocols defining the contracts between the engine and the remote hosts.

The reconciliation engine only talks to these two roles:

1. ReleaseSource: read-only access to the source repository's releases
2. ReleaseTarget: read/write access to the target repository's releases

``directory.ReleaseDirectory`` implements both against a GitHub host. Tests
use in-memory implementations.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .models import Release, RepositoryRef


class ReleaseSource(Protocol):
    """Read access to releases on the source host."""

    def list_releases(self, repo: RepositoryRef) -> list[Release]:
        """Return every release, paging until exhausted.

        Raises:
            TransferError: On any page failure, with ``partial`` holding the releases read so far
        """
        ...

    def get_latest_release(self, repo: RepositoryRef) -> Release:
        """Return the release the host flags as latest.

        Raises:
            NotFoundError: If the repository has no releases
            TransferError: On any other failure
        """
        ...

    def download(self, url: str, destination: Path) -> None:
        """Stream the bytes at ``url`` into ``destination``.

        Raises:
            TransferError: If the host does not answer with success
            OSError: If the local file cannot be written
        """
        ...


class ReleaseTarget(Protocol):
    """Read/write access to releases on the target host."""

    def list_releases(self, repo: RepositoryRef) -> list[Release]:
        """Return every release, drafts included.

        Raises:
            TransferError: On any page failure, with ``partial`` holding the releases read so far
        """
        ...

    def get_release_by_tag(self, repo: RepositoryRef, tag: str) -> Release:
        """Raises NotFoundError if no published release has this tag."""
        ...

    def create_release(self, repo: RepositoryRef, release: Release) -> Release:
        """Create a release copying tag, name, commitish, body and flags.

        Raises:
            ConflictError: If a release with this tag already exists
            TransferError: On any other failure
        """
        ...

    def edit_release(self, repo: RepositoryRef, release_id: int, patch: dict[str, Any]) -> None:
        """Apply a partial update. Raises TransferError on failure."""
        ...

    def upload_asset(
        self,
        upload_url: str,
        path: Path,
        *,
        name: str,
        label: str = "",
        content_type: str,
    ) -> None:
        """Upload a local file to a release's upload URL template.

        Raises:
            TransferError: Unless the host answers 201 Created
        """
        ...


class IssueCommenter(Protocol):
    """Posts the run summary back to the issue that triggered the run."""

    def create_issue_comment(self, repo: RepositoryRef, issue_number: int, body: str) -> None:
        """Raises TransferError on failure."""
        ...

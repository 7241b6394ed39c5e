"""Remote release directory backed by the GitHub REST API.

Listing, lookups and creation go through PyGithub. Asset bytes and the
``make_latest`` edit go through a plain ``requests`` session, since PyGithub
only uploads from paths it opens itself and cannot send a bare partial edit.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final

import requests
from github import GithubException, UnknownObjectException
from github.GithubObject import NotSet

from . import github_utils as ghu
from .exceptions import ConflictError, NotFoundError, TransferError
from .models import Release

if TYPE_CHECKING:
    from pathlib import Path

    from github import Github
    from github.Repository import Repository

    from .models import RepositoryRef

logger: logging.Logger = logging.getLogger(__name__)

UPLOAD_URL_TEMPLATE_SUFFIX: Final[str] = "{?name,label}"
DOWNLOAD_CHUNK_SIZE: Final[int] = 1024 * 1024


def strip_upload_template(upload_url: str) -> str:
    """Drop the RFC 6570 ``{?name,label}`` suffix from a release upload URL."""
    return upload_url.removesuffix(UPLOAD_URL_TEMPLATE_SUFFIX)


class ReleaseDirectory:
    """Releases and assets of repositories on one GitHub host."""

    _client: Github
    _session: requests.Session
    _api_url: str
    _token: str

    def __init__(self, client: Github, session: requests.Session, *, api_url: str, token: str = "") -> None:
        self._client = client
        self._session = session
        self._api_url = api_url.rstrip("/")
        self._token = token

    @classmethod
    def connect(cls, token: str, hostname: str = "", *, max_retries: int = 10) -> ReleaseDirectory:
        """Build a directory for github.com or an enterprise host.

        Raises:
            ConfigurationError: If the client cannot be constructed
        """
        return cls(
            ghu.get_client(token, hostname, max_retries=max_retries),
            ghu.get_session(token, max_retries=max_retries),
            api_url=ghu.api_url(hostname),
            token=token,
        )

    def _repo(self, repo: RepositoryRef) -> Repository:
        return self._client.get_repo(repo.full_name, lazy=True)

    def _sanitize(self, error: object) -> str:
        return ghu.sanitize_error(str(error), [self._token])

    def list_releases(self, repo: RepositoryRef) -> list[Release]:
        releases: list[Release] = []
        try:
            for release in self._repo(repo).get_releases():
                releases.append(Release.from_github(release))
        except (GithubException, requests.RequestException) as e:
            msg = f"Unable to get releases for {repo}: {self._sanitize(e)}"
            raise TransferError(msg, partial=releases) from e
        logger.debug(f"Listed {len(releases)} releases for {repo}")
        return releases

    def get_latest_release(self, repo: RepositoryRef) -> Release:
        try:
            return Release.from_github(self._repo(repo).get_latest_release())
        except UnknownObjectException as e:
            msg = f"No releases found for repository {repo}"
            raise NotFoundError(msg) from e
        except (GithubException, requests.RequestException) as e:
            msg = f"Unable to get latest release for {repo}: {self._sanitize(e)}"
            raise TransferError(msg) from e

    def get_release_by_tag(self, repo: RepositoryRef, tag: str) -> Release:
        # Draft releases are not reachable by tag
        try:
            return Release.from_github(self._repo(repo).get_release(tag))
        except UnknownObjectException as e:
            msg = f"Release not found for tag {tag} in {repo}"
            raise NotFoundError(msg) from e
        except (GithubException, requests.RequestException) as e:
            msg = f"Unable to get release by tag {tag} in {repo}: {self._sanitize(e)}"
            raise TransferError(msg) from e

    def create_release(self, repo: RepositoryRef, release: Release) -> Release:
        # The "latest" flag is set separately once every release is in place
        try:
            created = self._repo(repo).create_git_release(
                tag=release.tag_name,
                name=release.name,
                message=release.body,
                draft=release.draft,
                prerelease=release.prerelease,
                target_commitish=release.target_commitish or NotSet,
                make_latest="false",
            )
        except GithubException as e:
            if ghu.is_already_exists_error(e):
                msg = f"Release already exists: {release.display_name}"
                raise ConflictError(msg) from e
            msg = f"Unable to create release {release.display_name} in {repo}: {self._sanitize(e)}"
            raise TransferError(msg) from e
        except requests.RequestException as e:
            msg = f"Unable to create release {release.display_name} in {repo}: {self._sanitize(e)}"
            raise TransferError(msg) from e
        return Release.from_github(created)

    def edit_release(self, repo: RepositoryRef, release_id: int, patch: dict[str, Any]) -> None:
        url = f"{self._api_url}/repos/{repo.full_name}/releases/{release_id}"
        try:
            response = self._session.patch(url, json=patch)
        except (GithubException, requests.RequestException) as e:
            msg = f"Error editing release {release_id} in {repo}: {self._sanitize(e)}"
            raise TransferError(msg) from e
        if not response.ok:
            msg = f"Error editing release {release_id} in {repo}: HTTP {response.status_code} {response.text}"
            raise TransferError(msg)

    def download(self, url: str, destination: Path) -> None:
        try:
            with self._session.get(url, stream=True, headers={"Accept": "application/octet-stream"}) as response:
                if response.status_code != 200:  # noqa: PLR2004
                    msg = f"Download of {url} failed with status code {response.status_code}"
                    raise TransferError(msg)
                with destination.open("wb") as f:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        f.write(chunk)
        except (GithubException, requests.RequestException) as e:
            msg = f"Error downloading {destination.name}: {self._sanitize(e)}"
            raise TransferError(msg) from e

    def upload_asset(
        self,
        upload_url: str,
        path: Path,
        *,
        name: str,
        label: str = "",
        content_type: str,
    ) -> None:
        url = strip_upload_template(upload_url)
        size = path.stat().st_size
        headers = {"Content-Type": content_type, "Content-Length": str(size)}
        try:
            with path.open("rb") as f:
                response = self._session.post(url, params={"name": name, "label": label}, data=f, headers=headers)
        except (GithubException, requests.RequestException) as e:
            msg = f"Error uploading asset {name} to {url}: {self._sanitize(e)}"
            raise TransferError(msg) from e
        if response.status_code != 201:  # noqa: PLR2004
            msg = f"Error uploading asset {name} to {url}: HTTP {response.status_code} {response.text}"
            raise TransferError(msg)

    def create_issue_comment(self, repo: RepositoryRef, issue_number: int, body: str) -> None:
        """Post a comment on an issue. Raises TransferError on failure."""
        try:
            self._repo(repo).get_issue(issue_number).create_comment(body)
        except (GithubException, requests.RequestException) as e:
            msg = f"Error commenting on {repo}#{issue_number}: {self._sanitize(e)}"
            raise TransferError(msg) from e

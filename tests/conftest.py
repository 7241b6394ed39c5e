"""
Pytest configuration and fixtures.

- Integration tests fail on any WARNING logged by the code under test.
- ``FakeHost`` is an in-memory release directory that plays the source and
  target roles for engine, driver and integration tests.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from typing_extensions import override

import pytest

from gh_release_migrator.exceptions import ConflictError, NotFoundError, TransferError
from gh_release_migrator.models import Asset, Release, RepositoryRef

if TYPE_CHECKING:
    from collections.abc import Generator

# Store warning records during test execution
_integration_test_warnings: dict[str, list[logging.LogRecord]] = {}


class IntegrationTestWarningHandler(logging.Handler):
    """Custom logging handler to capture warnings during integration tests."""

    test_nodeid: str

    def __init__(self, test_nodeid: str) -> None:
        super().__init__()
        self.test_nodeid = test_nodeid
        self.setLevel(logging.WARNING)

    @override
    def emit(self, record: logging.LogRecord) -> None:
        """Capture WARNING and above level logs."""
        _integration_test_warnings.setdefault(self.test_nodeid, []).append(record)


@pytest.fixture(autouse=True)
def fail_on_log_warnings_for_integration_tests(
    request: pytest.FixtureRequest,
) -> Generator[None]:
    """Capture WARNING and above logs during integration tests so the report hook can fail them."""
    if request.node.get_closest_marker("integration") is None:
        yield
        return

    test_nodeid = request.node.nodeid
    _integration_test_warnings[test_nodeid] = []

    handler = IntegrationTestWarningHandler(test_nodeid)
    root_logger = logging.getLogger()
    root_logger.addHandler(handler)

    try:
        yield
    finally:
        root_logger.removeHandler(handler)


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[None]
) -> Generator[None]:  # type: ignore[misc]
    """Mark a passed integration test as failed if it logged warnings."""
    outcome = yield
    report = outcome.get_result()

    if call.when == "call" and report.outcome == "passed":
        test_nodeid = item.nodeid
        warning_records = _integration_test_warnings.get(test_nodeid, [])

        if warning_records:
            warning_messages = [
                f"{record.levelname}: {record.getMessage()} (in {record.name}:{record.lineno})"
                for record in warning_records
            ]
            report.outcome = "failed"
            report.longrepr = f"Integration test failed: {len(warning_records)} warning(s) detected:\n" + "\n".join(
                f"  - {msg}" for msg in warning_messages
            )

        _integration_test_warnings.pop(test_nodeid, None)


class FakeHost:
    """In-memory releases for any number of repositories on one host.

    Returned releases are deep copies, like fresh API responses. Every mutating
    call is recorded so tests can assert on what the engine did.
    """

    def __init__(self, name: str = "host") -> None:
        self.name = name
        self.releases: dict[RepositoryRef, list[Release]] = {}
        self.latest: dict[RepositoryRef, int] = {}
        self.blobs: dict[str, bytes] = {}
        self._next_id = 1000

        self.created: list[tuple[RepositoryRef, str]] = []
        self.uploads: list[tuple[str, str, str]] = []
        self.downloads: list[str] = []
        self.edits: list[tuple[RepositoryRef, int, dict[str, Any]]] = []
        self.comments: list[tuple[RepositoryRef, int, str]] = []

        self.fail_create: set[str] = set()
        self.conflict_create: set[str] = set()
        self.fail_upload: set[str] = set()
        self.fail_download: set[str] = set()
        self.fail_edit = False
        self.fail_list_after: int | None = None

    # Test helpers

    def add_release(
        self,
        repo: RepositoryRef,
        tag: str,
        name: str | None = None,
        commitish: str = "main",
        *,
        assets: dict[str, bytes] | None = None,
        body: str = "",
        draft: bool = False,
        latest: bool = False,
    ) -> Release:
        self._next_id += 1
        release = Release(
            tag_name=tag,
            name=tag if name is None else name,
            target_commitish=commitish,
            body=body,
            draft=draft,
            id=self._next_id,
            html_url=f"https://{self.name}/{repo.full_name}/releases/tag/{tag}",
            upload_url=f"https://uploads.{self.name}/{self._next_id}/assets{{?name,label}}",
        )
        for asset_name, content in (assets or {}).items():
            url = f"https://{self.name}/{repo.full_name}/releases/download/{tag}/{asset_name}"
            self.blobs[url] = content
            release.assets.append(
                Asset(name=asset_name, size=len(content), browser_download_url=url, content_type="")
            )
        self.releases.setdefault(repo, []).append(release)
        if latest:
            self.latest[repo] = release.id
        return release

    def find(self, repo: RepositoryRef, tag: str) -> list[Release]:
        return [r for r in self.releases.get(repo, []) if r.tag_name == tag]

    # ReleaseSource

    def list_releases(self, repo: RepositoryRef) -> list[Release]:
        releases = copy.deepcopy(self.releases.get(repo, []))
        if self.fail_list_after is not None:
            raise TransferError("page failed", partial=releases[: self.fail_list_after])
        return releases

    def get_latest_release(self, repo: RepositoryRef) -> Release:
        latest_id = self.latest.get(repo)
        for release in self.releases.get(repo, []):
            if release.id == latest_id:
                return copy.deepcopy(release)
        raise NotFoundError(f"No releases found for repository {repo}")

    def download(self, url: str, destination: Path) -> None:
        self.downloads.append(url)
        if url in self.fail_download or url not in self.blobs:
            raise TransferError(f"Download of {url} failed with status code 404")
        destination.write_bytes(self.blobs[url])

    # ReleaseTarget

    def get_release_by_tag(self, repo: RepositoryRef, tag: str) -> Release:
        for release in self.find(repo, tag):
            if not release.draft:
                return copy.deepcopy(release)
        raise NotFoundError(f"Release not found for tag {tag}")

    def create_release(self, repo: RepositoryRef, release: Release) -> Release:
        # Drafts do not claim their tag
        published = [r for r in self.find(repo, release.tag_name) if not r.draft]
        if release.tag_name in self.conflict_create or published:
            raise ConflictError(f"Release already exists: {release.display_name}")
        if release.tag_name in self.fail_create:
            raise TransferError(f"Unable to create release {release.display_name}: 500")
        self.created.append((repo, release.tag_name))
        created = self.add_release(
            repo, release.tag_name, release.name, release.target_commitish, body=release.body, draft=release.draft
        )
        return copy.deepcopy(created)

    def edit_release(self, repo: RepositoryRef, release_id: int, patch: dict[str, Any]) -> None:
        if self.fail_edit:
            raise TransferError("Error making release latest: 500")
        self.edits.append((repo, release_id, patch))
        if patch.get("make_latest") == "true":
            self.latest[repo] = release_id

    def upload_asset(
        self,
        upload_url: str,
        path: Path,
        *,
        name: str,
        label: str = "",
        content_type: str,
    ) -> None:
        if name in self.fail_upload:
            raise TransferError(f"Error uploading asset {name}: HTTP 500")
        self.uploads.append((upload_url, name, content_type))
        content = path.read_bytes()
        for releases in self.releases.values():
            for release in releases:
                if release.upload_url == upload_url:
                    release.assets.append(Asset(name=name, size=len(content), label=label, content_type=content_type))
                    return
        raise TransferError(f"No release behind {upload_url}")

    # IssueCommenter

    def create_issue_comment(self, repo: RepositoryRef, issue_number: int, body: str) -> None:
        self.comments.append((repo, issue_number, body))


@pytest.fixture
def source_host() -> FakeHost:
    return FakeHost("source.example")


@pytest.fixture
def target_host() -> FakeHost:
    return FakeHost("target.example")


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    return tmp_path / "tmp"

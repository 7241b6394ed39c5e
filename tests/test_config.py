"""Tests for run configuration."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from gh_release_migrator.config import MigrationConfig, load_config, resolve_token
from gh_release_migrator.exceptions import ConfigurationError
from gh_release_migrator.models import RepositoryRef
from gh_release_migrator.utils import InvalidPassPathError

BASE_ENV = {
    "GHMR_SOURCE_TOKEN": "src-token",
    "GHMR_TARGET_TOKEN": "tgt-token",
    "GHMR_TARGET_ORGANIZATION": "new-org",
}


@pytest.mark.unit
class TestValidate:
    def _config(self, **overrides: object) -> MigrationConfig:
        values: dict[str, object] = {
            "source_token": "s",
            "target_token": "t",
            "target_organization": "new-org",
            "source_organization": "old-org",
            "repository": "widget",
        }
        values.update(overrides)
        return MigrationConfig(**values)  # type: ignore[arg-type]

    def test_valid(self) -> None:
        self._config().validate()

    def test_repository_and_list_together(self) -> None:
        with pytest.raises(ConfigurationError, match="both a repository and a repository list"):
            self._config(repository_list="repos.txt").validate()

    def test_neither_repository_nor_list(self) -> None:
        with pytest.raises(ConfigurationError, match="No repository"):
            self._config(repository="").validate()

    def test_bare_repository_needs_source_organization(self) -> None:
        with pytest.raises(ConfigurationError, match="Source organization is required"):
            self._config(source_organization="").validate()

    def test_qualified_repository_needs_no_source_organization(self) -> None:
        self._config(source_organization="", repository="old-org/widget").validate()

    def test_target_organization_required(self) -> None:
        with pytest.raises(ConfigurationError, match="Target organization"):
            self._config(target_organization="").validate()

    @pytest.mark.parametrize("field", ["source_token", "target_token"])
    def test_tokens_required(self, field: str) -> None:
        with pytest.raises(ConfigurationError, match="token is required"):
            self._config(**{field: ""}).validate()

    def test_frozen(self) -> None:
        config = self._config()
        with pytest.raises(AttributeError):
            config.repository = "other"  # type: ignore[misc]


@pytest.mark.unit
class TestRepositoryRefs:
    def setup_method(self) -> None:
        self.config = MigrationConfig(
            source_token="s", target_token="t", target_organization="new-org", source_organization="old-org"
        )

    def test_bare_name_uses_source_organization(self) -> None:
        assert self.config.source_ref("widget") == RepositoryRef("old-org", "widget")

    def test_owner_form(self) -> None:
        assert self.config.source_ref(" other/widget ") == RepositoryRef("other", "widget")

    def test_target_keeps_short_name(self) -> None:
        assert self.config.target_ref("other/widget") == RepositoryRef("new-org", "widget")

    @pytest.mark.parametrize("entry", ["a/b/c", "/widget", "owner/"])
    def test_invalid_entries(self, entry: str) -> None:
        with pytest.raises(ConfigurationError, match="Invalid repository"):
            self.config.source_ref(entry)


@pytest.mark.unit
class TestLoadConfig:
    def test_environment_fallbacks(self) -> None:
        env = BASE_ENV | {"GHMR_REPOSITORY": "old-org/widget", "GHMR_SOURCE_HOSTNAME": "ghe.example.com/"}

        config = load_config(environ=env)

        assert config.source_token == "src-token"
        assert config.target_token == "tgt-token"
        assert config.target_organization == "new-org"
        assert config.repository == "old-org/widget"
        assert config.source_hostname == "ghe.example.com"
        assert config.scratch_dir == Path("tmp")
        assert config.max_retries == 10

    def test_arguments_override_environment(self) -> None:
        env = BASE_ENV | {"GHMR_REPOSITORY": "ignored/repo"}

        config = load_config(repository="old-org/widget", target_organization="other-org", max_retries=0, environ=env)

        assert config.repository == "old-org/widget"
        assert config.target_organization == "other-org"
        assert config.max_retries == 0

    def test_invalid_configuration_raises(self) -> None:
        env = BASE_ENV | {"GHMR_REPOSITORY": "widget", "GHMR_REPOSITORY_LIST": "repos.txt"}

        with pytest.raises(ConfigurationError):
            load_config(environ=env)


@pytest.mark.unit
class TestResolveToken:
    def test_explicit_wins(self) -> None:
        assert resolve_token("explicit", "some/path", "SOURCE_TOKEN", {}) == "explicit"

    @patch("gh_release_migrator.config.utils.get_pass_value")
    def test_pass_path(self, mock_pass) -> None:
        mock_pass.return_value = "from-pass"
        assert resolve_token(None, "github/token", "SOURCE_TOKEN", {"GHMR_SOURCE_TOKEN": "env"}) == "from-pass"
        mock_pass.assert_called_once_with("github/token")

    @patch("gh_release_migrator.config.utils.get_pass_value")
    def test_pass_failure_is_configuration_error(self, mock_pass) -> None:
        mock_pass.side_effect = InvalidPassPathError("not found")
        with pytest.raises(ConfigurationError, match="github/token"):
            resolve_token(None, "github/token", "SOURCE_TOKEN", {})

    def test_environment(self) -> None:
        assert resolve_token(None, None, "TARGET_TOKEN", {"GHMR_TARGET_TOKEN": " env "}) == "env"

    def test_missing(self) -> None:
        assert resolve_token(None, None, "TARGET_TOKEN", {}) == ""

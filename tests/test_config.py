"""Tests for run settings and token discovery."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from ach.azure_devops_client import AzureDevOpsAuthError
from ach.config import AchConfigError, AchSettings, get_ado_pat_with_source, load_settings
from ach.remote_url import AzureRepoComponents


@dataclass
class FixedRepository:
    """Repository state with literal answers."""

    url: str
    head: str = "abc123"
    calls: list[str] = field(default_factory=list)

    def remote_url(self) -> str:
        self.calls.append("remote_url")
        return self.url

    def head_commit(self) -> str:
        self.calls.append("head_commit")
        return self.head


@pytest.mark.unit
@pytest.mark.usefixtures("isolated_token_env")
def test_token_prefers_ado_pat(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ADO_PAT", "primary")
    monkeypatch.setenv("AZURE_DEVOPS_EXT_PAT", "secondary")
    assert get_ado_pat_with_source() == ("primary", "ADO_PAT")


@pytest.mark.unit
@pytest.mark.usefixtures("isolated_token_env")
def test_token_falls_back_to_azure_cli_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AZURE_DEVOPS_EXT_PAT", "secondary")
    assert get_ado_pat_with_source() == ("secondary", "AZURE_DEVOPS_EXT_PAT")


@pytest.mark.unit
@pytest.mark.usefixtures("isolated_token_env")
def test_token_missing_raises_auth_error() -> None:
    with pytest.raises(AzureDevOpsAuthError, match="ADO_PAT"):
        get_ado_pat_with_source()


@pytest.mark.unit
@pytest.mark.usefixtures("isolated_token_env")
def test_token_is_read_from_dotenv_file() -> None:
    Path(".env").write_text("ADO_PAT=from-dotenv\n", encoding="utf-8")
    try:
        token = get_ado_pat_with_source()
    finally:
        os.environ.pop("ADO_PAT", None)
    assert token == ("from-dotenv", "ADO_PAT")


@pytest.mark.unit
@pytest.mark.usefixtures("isolated_token_env")
def test_load_settings_collects_coordinates_head_and_token(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("ADO_PAT", "secret")
    repository = FixedRepository(url="git@ssh.dev.azure.com:v3/MyOrg/MyProject/MyRepo")

    settings = load_settings(repository)

    assert settings == AchSettings(
        coordinates=AzureRepoComponents(org="MyOrg", project="MyProject", repo="MyRepo"),
        head_commit="abc123",
        pat="secret",
    )


@pytest.mark.unit
@pytest.mark.usefixtures("isolated_token_env")
def test_load_settings_rejects_non_azure_remote(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ADO_PAT", "secret")
    repository = FixedRepository(url="https://github.com/user/repo.git")

    with pytest.raises(AchConfigError, match="github.com/user/repo.git"):
        load_settings(repository)

    assert repository.calls == ["remote_url"]


@pytest.mark.unit
@pytest.mark.usefixtures("isolated_token_env")
def test_load_settings_without_token_fails() -> None:
    repository = FixedRepository(url="https://me@dev.azure.com/MyOrg/MyProject/_git/MyRepo")

    with pytest.raises(AzureDevOpsAuthError):
        load_settings(repository)

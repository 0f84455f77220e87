"""Run settings assembled from the working tree and environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from ach.azure_devops_client import AzureDevOpsAuthError
from ach.git import RepositoryState
from ach.remote_url import AzureRepoComponents, parse_azure_git_url

ADO_PAT_ENV_VAR = "ADO_PAT"
AZURE_CLI_PAT_ENV_VAR = "AZURE_DEVOPS_EXT_PAT"


class AchConfigError(RuntimeError):
    """Raised when the working tree does not describe an Azure DevOps repository."""


@dataclass(frozen=True, slots=True)
class AchSettings:
    """Immutable inputs for one lookup run."""

    coordinates: AzureRepoComponents
    head_commit: str
    pat: str


def get_ado_pat_with_source() -> tuple[str, str]:
    """Read the Azure DevOps token and return it with its environment source key."""
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    ado_pat = os.getenv(ADO_PAT_ENV_VAR)
    if ado_pat:
        return ado_pat, ADO_PAT_ENV_VAR

    cli_pat = os.getenv(AZURE_CLI_PAT_ENV_VAR)
    if cli_pat:
        return cli_pat, AZURE_CLI_PAT_ENV_VAR

    message = (
        f"Missing Azure DevOps token. Set {ADO_PAT_ENV_VAR} (preferred) "
        f"or {AZURE_CLI_PAT_ENV_VAR}."
    )
    raise AzureDevOpsAuthError(message)


def resolve_coordinates(repository: RepositoryState) -> AzureRepoComponents:
    """Parse the repository's remote URL into Azure DevOps coordinates."""
    remote_url = repository.remote_url()
    coordinates = parse_azure_git_url(remote_url)
    if coordinates is None:
        raise AchConfigError(
            f"Remote URL '{remote_url}' is not an Azure DevOps repository URL."
        )
    return coordinates


def load_settings(repository: RepositoryState) -> AchSettings:
    """Collect coordinates, HEAD and token before any network call is made."""
    coordinates = resolve_coordinates(repository)
    head_commit = repository.head_commit()
    pat, _source = get_ado_pat_with_source()
    return AchSettings(coordinates=coordinates, head_commit=head_commit, pat=pat)

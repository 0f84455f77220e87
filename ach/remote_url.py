"""Azure DevOps remote URL parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass

SSH_REMOTE_PATTERN = re.compile(r"git@ssh\.dev\.azure\.com:v3/([^/]+)/([^/]+)/([^/]+)")
HTTPS_REMOTE_PATTERN = re.compile(
    r"https://([^@]+)@dev\.azure\.com/([^/]+)/([^/]+)/_git/([^/]+)"
)


@dataclass(frozen=True, slots=True)
class AzureRepoComponents:
    """Organization, project and repository addressed by a git remote."""

    org: str
    project: str
    repo: str


def parse_azure_git_url(url: str) -> AzureRepoComponents | None:
    """Parse an Azure DevOps SSH or HTTPS remote URL.

    The whole string must match one of the two forms. In the HTTPS form the
    user name before ``@`` is ignored; only the path segments are used.
    Returns ``None`` when the URL is not an Azure DevOps remote.
    """
    ssh_match = SSH_REMOTE_PATTERN.fullmatch(url)
    if ssh_match is not None:
        org, project, repo = ssh_match.groups()
        return AzureRepoComponents(org=org.strip(), project=project.strip(), repo=repo.strip())

    https_match = HTTPS_REMOTE_PATTERN.fullmatch(url)
    if https_match is not None:
        _principal, org, project, repo = https_match.groups()
        return AzureRepoComponents(org=org.strip(), project=project.strip(), repo=repo.strip())

    return None

"""Integration tests for the lookup against the live Azure DevOps API."""

from __future__ import annotations

import os

import pytest
from ach.azure_devops_client import build_ado_client, fetch_pull_requests
from ach.remote_url import AzureRepoComponents, parse_azure_git_url
from ach.resolver import build_report


def _integration_target() -> tuple[AzureRepoComponents, str]:
    """Return coordinates and commit configured for integration tests."""
    remote_url = os.getenv("ADO_TEST_REMOTE_URL")
    commit = os.getenv("ADO_TEST_COMMIT")
    if not remote_url or not commit:
        pytest.skip("Set ADO_TEST_REMOTE_URL and ADO_TEST_COMMIT to run Azure DevOps tests.")
    coordinates = parse_azure_git_url(remote_url)
    if coordinates is None:
        pytest.fail("ADO_TEST_REMOTE_URL must be an Azure DevOps remote URL.")
    return coordinates, commit


def _ado_token() -> str:
    """Return the configured token or skip."""
    token = os.getenv("ADO_PAT")
    if not token:
        pytest.skip("Set ADO_PAT for integration tests.")
    return token


@pytest.mark.integration
def test_live_list_pull_requests() -> None:
    token = _ado_token()
    coordinates, _commit = _integration_target()

    with build_ado_client(token, timeout_seconds=20) as client:
        pull_requests = fetch_pull_requests(client=client, coordinates=coordinates)

    assert all(pr.pull_request_id > 0 for pr in pull_requests)


@pytest.mark.integration
def test_live_build_report_for_commit() -> None:
    token = _ado_token()
    coordinates, commit = _integration_target()

    with build_ado_client(token, timeout_seconds=20) as client:
        report = build_report(client=client, coordinates=coordinates, target_commit=commit)

    assert report is not None
    assert report.pull_request_id > 0

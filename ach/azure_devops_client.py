"""Azure DevOps REST API wrapper."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, unquote

import httpx

from ach.remote_url import AzureRepoComponents

logger = logging.getLogger(__name__)

ADO_API_BASE_URL = "https://dev.azure.com"
ADO_API_VERSION = "7.1"
CONNECTION_DATA_API_VERSION = "7.1-preview"
WORK_ITEM_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
WORK_ITEM_ID_MIN = -(2**31)
WORK_ITEM_ID_MAX = 2**31 - 1


class AzureDevOpsAuthError(RuntimeError):
    """Raised when required Azure DevOps authentication is missing."""


class AzureDevOpsApiError(RuntimeError):
    """Raised when an Azure DevOps API request fails."""

    def __init__(self, message: str, *, status_code: int, endpoint: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


@dataclass(frozen=True, slots=True)
class PullRequestSummary:
    """Pull request fields needed to look up its commits and work items."""

    pull_request_id: int
    repository_id: str


def _segment(value: str) -> str:
    """Percent-encode one URL path segment, keeping escapes already present.

    Remote URLs carry segments such as ``My%20Project`` that are already
    encoded, so the value is decoded first and encoded exactly once.
    """
    return quote(unquote(value), safe="")


def _repository_endpoint(coordinates: AzureRepoComponents, repository: str) -> str:
    """Build the git repository endpoint prefix for an org/project."""
    return (
        f"/{_segment(coordinates.org)}/{_segment(coordinates.project)}"
        f"/_apis/git/repositories/{_segment(repository)}"
    )


def _ensure_mapping(value: object, *, context: str) -> dict[str, Any]:
    """Ensure a response fragment is a JSON object."""
    if not isinstance(value, dict):
        raise AzureDevOpsApiError(
            f"Expected JSON object for {context}.",
            status_code=500,
            endpoint=context,
        )
    return value


def _require_str(payload: dict[str, Any], *, key: str, endpoint: str) -> str:
    """Read a required string field from payload."""
    value = payload.get(key)
    if not isinstance(value, str):
        raise AzureDevOpsApiError(
            f"Expected string field '{key}' in Azure DevOps response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _optional_str(payload: dict[str, Any], *, key: str, endpoint: str) -> str | None:
    """Read an optional string field from payload."""
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise AzureDevOpsApiError(
            f"Expected '{key}' to be a string or null in Azure DevOps response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _require_int(payload: dict[str, Any], *, key: str, endpoint: str) -> int:
    """Read a required integer field from payload."""
    value = payload.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise AzureDevOpsApiError(
            f"Expected integer field '{key}' in Azure DevOps response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _require_object(payload: dict[str, Any], *, key: str, endpoint: str) -> dict[str, Any]:
    """Read a required object field from payload."""
    value = payload.get(key)
    if not isinstance(value, dict):
        raise AzureDevOpsApiError(
            f"Expected object field '{key}' in Azure DevOps response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _raise_http_error(response: httpx.Response, endpoint: str) -> None:
    """Raise a typed error for a non-success Azure DevOps API response."""
    if response.status_code == 203:
        # Azure DevOps answers a rejected PAT with a 203 sign-in page.
        message = f"Azure DevOps rejected the access token for '{endpoint}'."
    else:
        message = (
            f"Azure DevOps API request failed with status {response.status_code} "
            f"for '{endpoint}'."
        )
    raise AzureDevOpsApiError(
        message,
        status_code=response.status_code,
        endpoint=endpoint,
    )


def _request_json(
    client: httpx.Client,
    endpoint: str,
    *,
    api_version: str = ADO_API_VERSION,
) -> dict[str, Any]:
    """Perform a single GET request and decode its JSON object body."""
    logger.debug("GET %s", endpoint)
    response = client.get(endpoint, params={"api-version": api_version})
    if response.status_code >= 400 or response.status_code == 203:
        _raise_http_error(response, endpoint)
    try:
        payload = response.json()
    except ValueError as error:
        raise AzureDevOpsApiError(
            "Expected JSON body in Azure DevOps response.",
            status_code=response.status_code,
            endpoint=endpoint,
        ) from error
    return _ensure_mapping(payload, context=endpoint)


def _request_value_list(client: httpx.Client, endpoint: str) -> list[dict[str, Any]]:
    """Perform a request for an Azure DevOps collection and return its ``value`` rows."""
    payload = _request_json(client, endpoint)
    value = payload.get("value")
    if not isinstance(value, list):
        raise AzureDevOpsApiError(
            "Expected 'value' array in Azure DevOps response.",
            status_code=500,
            endpoint=endpoint,
        )
    rows: list[dict[str, Any]] = []
    for item in value:
        if not isinstance(item, dict):
            raise AzureDevOpsApiError(
                "Expected all 'value' items to be JSON objects in Azure DevOps response.",
                status_code=500,
                endpoint=endpoint,
            )
        rows.append(item)
    return rows


def fetch_pull_requests(
    *,
    client: httpx.Client,
    coordinates: AzureRepoComponents,
) -> tuple[PullRequestSummary, ...]:
    """List the repository's active pull requests in service order.

    The listing is a single request; server-side paging is not followed.
    """
    endpoint = f"{_repository_endpoint(coordinates, coordinates.repo)}/pullrequests"
    pull_requests: list[PullRequestSummary] = []
    for row in _request_value_list(client, endpoint):
        repository_payload = _require_object(row, key="repository", endpoint=endpoint)
        pull_requests.append(
            PullRequestSummary(
                pull_request_id=_require_int(row, key="pullRequestId", endpoint=endpoint),
                repository_id=_require_str(repository_payload, key="id", endpoint=endpoint),
            )
        )
    return tuple(pull_requests)


def fetch_pull_request_commit_ids(
    *,
    client: httpx.Client,
    coordinates: AzureRepoComponents,
    pull_request: PullRequestSummary,
) -> tuple[str, ...]:
    """List commit ids of one pull request, skipping entries without an id."""
    endpoint = (
        f"{_repository_endpoint(coordinates, pull_request.repository_id)}"
        f"/pullRequests/{pull_request.pull_request_id}/commits"
    )
    commit_ids: list[str] = []
    for row in _request_value_list(client, endpoint):
        commit_id = _optional_str(row, key="commitId", endpoint=endpoint)
        if commit_id is not None:
            commit_ids.append(commit_id)
    return tuple(commit_ids)


def fetch_pull_request_work_item_ids(
    *,
    client: httpx.Client,
    coordinates: AzureRepoComponents,
    pull_request: PullRequestSummary,
) -> tuple[int, ...]:
    """List ids of work items linked to a pull request.

    References without an id are skipped. A single id that is not a 32-bit
    signed integer fails the whole call.
    """
    endpoint = (
        f"{_repository_endpoint(coordinates, coordinates.repo)}"
        f"/pullRequests/{pull_request.pull_request_id}/workitems"
    )
    work_item_ids: list[int] = []
    for row in _request_value_list(client, endpoint):
        raw_id = _optional_str(row, key="id", endpoint=endpoint)
        if raw_id is None:
            continue
        if not WORK_ITEM_ID_PATTERN.fullmatch(raw_id) or not (
            WORK_ITEM_ID_MIN <= int(raw_id) <= WORK_ITEM_ID_MAX
        ):
            raise AzureDevOpsApiError(
                f"Expected 32-bit integer work item id, got '{raw_id}'.",
                status_code=500,
                endpoint=endpoint,
            )
        work_item_ids.append(int(raw_id))
    return tuple(work_item_ids)


def fetch_connection_user(*, client: httpx.Client, org: str) -> str:
    """Fetch the display name of the user the token authenticates as."""
    endpoint = f"/{_segment(org)}/_apis/connectionData"
    payload = _request_json(client, endpoint, api_version=CONNECTION_DATA_API_VERSION)
    user_payload = _require_object(payload, key="authenticatedUser", endpoint=endpoint)
    return _require_str(user_payload, key="providerDisplayName", endpoint=endpoint)


def build_ado_client(
    pat: str,
    timeout_seconds: int = 20,
    *,
    trust_env: bool = True,
) -> httpx.Client:
    """Build an HTTP client authenticated with a personal access token."""
    headers = {"Accept": "application/json"}
    return httpx.Client(
        base_url=ADO_API_BASE_URL,
        headers=headers,
        auth=("", pat),
        timeout=timeout_seconds,
        trust_env=trust_env,
    )

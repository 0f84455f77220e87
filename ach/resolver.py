"""Commit to pull request resolution with work item enrichment."""

from __future__ import annotations

import logging

import httpx

from ach.azure_devops_client import (
    AzureDevOpsApiError,
    PullRequestSummary,
    fetch_pull_request_commit_ids,
    fetch_pull_request_work_item_ids,
    fetch_pull_requests,
)
from ach.remote_url import AzureRepoComponents
from ach.schema import PullRequestReport

logger = logging.getLogger(__name__)


def resolve_pull_request(
    *,
    client: httpx.Client,
    coordinates: AzureRepoComponents,
    target_commit: str,
) -> PullRequestSummary | None:
    """Return the first pull request, in service order, containing ``target_commit``.

    Commit lists are fetched one pull request at a time and scanning stops at
    the first exact match. Request failures propagate to the caller.
    """
    for pull_request in fetch_pull_requests(client=client, coordinates=coordinates):
        logger.debug("Scanning commits of pull request #%d", pull_request.pull_request_id)
        commit_ids = fetch_pull_request_commit_ids(
            client=client,
            coordinates=coordinates,
            pull_request=pull_request,
        )
        if target_commit in commit_ids:
            return pull_request
    return None


def fetch_work_items(
    *,
    client: httpx.Client,
    coordinates: AzureRepoComponents,
    pull_request: PullRequestSummary,
) -> list[int]:
    """Return ids of the work items linked to ``pull_request`` in service order."""
    return list(
        fetch_pull_request_work_item_ids(
            client=client,
            coordinates=coordinates,
            pull_request=pull_request,
        )
    )


def build_report(
    *,
    client: httpx.Client,
    coordinates: AzureRepoComponents,
    target_commit: str,
) -> PullRequestReport | None:
    """Resolve ``target_commit`` to a report, or ``None`` when no pull request has it.

    A failed work item lookup still yields a report, with no work items.
    """
    pull_request = resolve_pull_request(
        client=client,
        coordinates=coordinates,
        target_commit=target_commit,
    )
    if pull_request is None:
        return None

    try:
        work_item_ids = fetch_work_items(
            client=client,
            coordinates=coordinates,
            pull_request=pull_request,
        )
    except (AzureDevOpsApiError, httpx.HTTPError) as error:
        logger.warning(
            "Work item lookup failed for pull request #%d: %s",
            pull_request.pull_request_id,
            error,
        )
        work_item_ids = []

    return PullRequestReport(
        pull_request_id=pull_request.pull_request_id,
        work_item_ids=work_item_ids,
    )

"""Report contract for lookup output."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PullRequestReport(BaseModel):
    """Pull request matched to the checked-out commit and its linked work items."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    pull_request_id: int = Field(ge=1)
    work_item_ids: list[int] = Field(default_factory=list)

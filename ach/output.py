"""Terminal rendering of lookup results."""

from __future__ import annotations

from ach.schema import PullRequestReport

NO_MATCH_MESSAGE = "no pr info found"


def render_report_lines(report: PullRequestReport | None) -> list[str]:
    """Render a report as the line-oriented text output."""
    if report is None:
        return [NO_MATCH_MESSAGE]
    lines = [f"Pull-request #{report.pull_request_id}"]
    lines.extend(f"Work-item #{work_item_id}" for work_item_id in report.work_item_ids)
    return lines


def render_report_json(report: PullRequestReport | None) -> str:
    """Render a report as JSON, ``null`` when nothing matched."""
    if report is None:
        return "null"
    return report.model_dump_json()

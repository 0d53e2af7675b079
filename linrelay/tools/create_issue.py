"""create_issue tool."""

import logging
from typing import Any

from linrelay.errors import TrackerError, ValidationError
from linrelay.models import CreateIssueInput, ToolResult
from linrelay.providers.base import TrackerClient
from linrelay.render import render_issue_details
from linrelay.tools.arguments import optional_int, optional_str, optional_str_list

logger = logging.getLogger(__name__)

MIN_PRIORITY = 1
MAX_PRIORITY = 4


def _parse(args: dict[str, Any]) -> CreateIssueInput:
    title = optional_str(args, "title")
    if not title or not title.strip():
        raise ValidationError("Error: Issue title is required")

    team_id = optional_str(args, "teamId")
    if not team_id:
        raise ValidationError("Error: Team ID is required. Use the get_teams tool to see available teams.")

    priority = optional_int(args, "priority")
    if priority is not None and not MIN_PRIORITY <= priority <= MAX_PRIORITY:
        raise ValidationError("Error: Priority must be between 1 (urgent) and 4 (low)")

    return CreateIssueInput(
        title=title.strip(),
        team_id=team_id,
        description=optional_str(args, "description"),
        priority=priority,
        assignee_id=optional_str(args, "assigneeId") or None,
        label_ids=optional_str_list(args, "labelIds", "labels"),
        state_id=optional_str(args, "stateId") or None,
    )


async def create_issue(tracker: TrackerClient, args: dict[str, Any]) -> ToolResult:
    try:
        data = _parse(args)
    except ValidationError as exc:
        return ToolResult.fail(str(exc))

    try:
        issue = await tracker.create_issue(data)
    except TrackerError as exc:
        logger.error("Create issue failed: %s", exc)
        return ToolResult.fail(f"❌ Failed to create issue: {exc}", error=str(exc))

    text = f"✅ Successfully created issue: {issue.identifier} - {issue.title}\n\n📋 Details:\n"
    text += render_issue_details(issue)
    if issue.description:
        text += f"\n\n📝 Description: {issue.description}"
    return ToolResult.ok(text, issue=issue)

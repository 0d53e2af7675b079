"""update_issue tool."""

import logging
from typing import Any

from linrelay.errors import TrackerError, ValidationError
from linrelay.models import Issue, ToolResult, UpdateIssueInput
from linrelay.providers.base import TrackerClient
from linrelay.render import priority_name, render_issue_details
from linrelay.tools.arguments import optional_int, optional_str, optional_str_list

logger = logging.getLogger(__name__)

MIN_PRIORITY = 0
MAX_PRIORITY = 4

NO_FIELDS_ERROR = "At least one field must be provided to update"


def _parse(args: dict[str, Any]) -> UpdateIssueInput:
    issue_id = optional_str(args, "issueId")
    if not issue_id:
        raise ValidationError("Error: Issue ID is required to update an issue")

    data = UpdateIssueInput(
        issue_id=issue_id,
        title=optional_str(args, "title") or None,
        description=optional_str(args, "description"),
        state_id=optional_str(args, "stateId") or None,
        priority=optional_int(args, "priority"),
        assignee_id=optional_str(args, "assigneeId") or None,
        label_ids=optional_str_list(args, "labelIds") or None,
    )

    mutable = (data.title, data.description, data.state_id, data.priority, data.assignee_id, data.label_ids)
    if all(value is None for value in mutable):
        raise ValidationError(
            f"Error: {NO_FIELDS_ERROR} (title, description, stateId, priority, assigneeId, or labelIds)"
        )

    if data.priority is not None and not MIN_PRIORITY <= data.priority <= MAX_PRIORITY:
        raise ValidationError("Error: Priority must be between 0 (no priority) and 4 (low)")

    return data


def describe_changes(data: UpdateIssueInput, before: Issue, after: Issue) -> list[str]:
    """Field-by-field change list; fields without a detected change are omitted."""
    changes: list[str] = []
    if data.title and data.title != before.title:
        changes.append(f'📝 Title: "{before.title}" → "{data.title}"')
    if data.description is not None and data.description != before.description:
        changes.append("📄 Description: Updated")
    if data.state_id and data.state_id != before.state.id:
        changes.append(f'📊 State: "{before.state.name}" → "{after.state.name}"')
    if data.priority is not None and data.priority != before.priority:
        changes.append(f"⚡ Priority: {priority_name(before.priority)} → {priority_name(data.priority)}")
    if data.assignee_id is not None:
        old = before.assignee.name if before.assignee else "Unassigned"
        new = after.assignee.name if after.assignee else "Unassigned"
        if old != new:
            changes.append(f"👤 Assignee: {old} → {new}")
    return changes


async def update_issue(tracker: TrackerClient, args: dict[str, Any]) -> ToolResult:
    try:
        data = _parse(args)
    except ValidationError as exc:
        message = str(exc)
        return ToolResult.fail(message, error=NO_FIELDS_ERROR if NO_FIELDS_ERROR in message else message)

    try:
        before = await tracker.get_issue(data.issue_id)
    except TrackerError as exc:
        logger.info("Issue %s could not be loaded before update: %s", data.issue_id, exc)
        return ToolResult.fail(
            f"❌ Issue not found: {data.issue_id}. Please check the issue ID and try again.",
            error=f"Issue not found: {data.issue_id}",
        )

    try:
        after = await tracker.update_issue(data)
    except TrackerError as exc:
        logger.error("Update issue %s failed: %s", data.issue_id, exc)
        return ToolResult.fail(f"❌ Failed to update issue: {exc}", error=str(exc))

    changes = describe_changes(data, before, after)
    changes_text = "\n".join(changes) if changes else "No visible changes detected"
    text = (
        f"✅ Successfully updated issue: {after.identifier} - {after.title}\n\n"
        f"🔄 Changes made:\n{changes_text}\n\n"
        f"📋 Current details:\n{render_issue_details(after)}"
    )
    return ToolResult.ok(text, issue=after)

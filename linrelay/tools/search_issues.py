"""search_issues tool."""

import logging
from typing import Any

from linrelay.errors import TrackerError, ValidationError
from linrelay.models import SearchIssuesInput, ToolResult
from linrelay.providers.base import TrackerClient
from linrelay.render import render_issue_list
from linrelay.tools.arguments import optional_int, optional_str

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 25
MAX_LIMIT = 50


def clamp_limit(raw: Any) -> int:
    """Clamp a requested limit to [1, 50]; missing or non-numeric means the default."""
    if raw is None or raw == "" or isinstance(raw, bool):
        return DEFAULT_LIMIT
    try:
        limit = int(float(raw))
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return min(max(1, limit), MAX_LIMIT)


def _filters_text(args: dict[str, Any]) -> str:
    parts = []
    if args.get("query"):
        parts.append(f'Query: "{args["query"]}"')
    if args.get("teamId"):
        parts.append(f"Team ID: {args['teamId']}")
    if args.get("assigneeId"):
        parts.append(f"Assignee ID: {args['assigneeId']}")
    if args.get("stateId"):
        parts.append(f"State ID: {args['stateId']}")
    if args.get("priority"):
        parts.append(f"Priority: {args['priority']}")
    return "\n".join(parts)


async def search_issues(tracker: TrackerClient, args: dict[str, Any]) -> ToolResult:
    limit = clamp_limit(args.get("limit"))
    try:
        data = SearchIssuesInput(
            query=optional_str(args, "query") or None,
            team_id=optional_str(args, "teamId") or None,
            assignee_id=optional_str(args, "assigneeId") or None,
            state_id=optional_str(args, "stateId") or None,
            priority=optional_int(args, "priority"),
            limit=limit,
        )
    except ValidationError as exc:
        return ToolResult.fail(str(exc))

    try:
        issues = await tracker.search_issues(data)
    except TrackerError as exc:
        logger.error("Search issues failed: %s", exc)
        return ToolResult.fail(f"❌ Failed to search issues: {exc}", error=str(exc))

    if not issues:
        filters = _filters_text(args)
        text = "🔍 No issues found matching your criteria."
        if filters:
            text += f"\n\n{filters}"
        text += "\n\nTry broadening your search criteria or use the get_teams tool to see available teams."
        return ToolResult.ok(text, issues=[])

    plural = "" if len(issues) == 1 else "s"
    text = f"🔍 Found {len(issues)} issue{plural}:\n\n{render_issue_list(issues)}"
    if len(issues) == limit:
        text += f"\n\n⚠️ Results limited to {limit} items. Use a more specific search to see different results."
    return ToolResult.ok(text, issues=issues)

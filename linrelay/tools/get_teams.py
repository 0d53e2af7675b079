"""get_teams tool."""

import logging
from typing import Any

from linrelay.errors import TrackerError
from linrelay.models import ToolResult
from linrelay.providers.base import TrackerClient
from linrelay.render import render_team_list

logger = logging.getLogger(__name__)

_NO_TEAMS = """👥 No teams found. This could mean:
- You don't have access to any teams
- Your Linear API key doesn't have the required permissions
- There's an issue with the Linear connection

Please check your Linear account and API key permissions."""

_TEAMS_FAILED = """❌ Failed to get teams: {error}

This could be due to:
- Invalid Linear API key
- Network connectivity issues
- Insufficient permissions on your Linear account

Please check your configuration and try again."""


async def get_teams(tracker: TrackerClient, args: dict[str, Any]) -> ToolResult:
    try:
        teams = await tracker.get_teams()
    except TrackerError as exc:
        logger.error("Get teams failed: %s", exc)
        return ToolResult.fail(_TEAMS_FAILED.format(error=exc), error=str(exc))

    if not teams:
        return ToolResult.ok(_NO_TEAMS, teams=[])

    user = None
    user_line = ""
    try:
        user = await tracker.get_current_user()
        user_line = f"👤 Connected as: {user.name} ({user.email})\n\n"
    except TrackerError as exc:
        logger.warning("Could not load current user for team listing: %s", exc)

    plural = "" if len(teams) == 1 else "s"
    first = teams[0]
    text = (
        f"{user_line}👥 Found {len(teams)} team{plural}:\n\n"
        f"{render_team_list(teams)}\n\n"
        "💡 Use team IDs when creating or filtering issues. For example:\n"
        f'- Create issue: Use teamId "{first.id}" for {first.name}\n'
        "- Search issues: Filter by teamId to see issues from specific teams"
    )
    return ToolResult.ok(text, teams=teams, user=user)

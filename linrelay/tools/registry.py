"""Dispatch a ToolInvocation to its executor."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from linrelay.models import ToolInvocation, ToolResult
from linrelay.providers.base import TrackerClient
from linrelay.tools.create_issue import create_issue
from linrelay.tools.get_teams import get_teams
from linrelay.tools.search_issues import search_issues
from linrelay.tools.update_issue import update_issue

logger = logging.getLogger(__name__)

Executor = Callable[[TrackerClient, dict[str, Any]], Awaitable[ToolResult]]

EXECUTORS: dict[str, Executor] = {
    "search_issues": search_issues,
    "create_issue": create_issue,
    "update_issue": update_issue,
    "get_teams": get_teams,
}


async def execute_tool(tracker: TrackerClient, invocation: ToolInvocation) -> ToolResult:
    executor = EXECUTORS.get(invocation.tool_name)
    if executor is None:
        return ToolResult.fail(f"Error executing {invocation.tool_name}: Unknown function")

    logger.info("Executing %s with %s", invocation.tool_name, invocation.arguments)
    try:
        result = await executor(tracker, dict(invocation.arguments))
    except Exception as exc:
        logger.exception("Tool %s raised", invocation.tool_name)
        return ToolResult.fail(f"Error executing {invocation.tool_name}: {exc}", error=str(exc))

    if result.is_error:
        logger.info("%s returned an error: %s", invocation.tool_name, result.error)
    return result

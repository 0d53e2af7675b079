"""Keyword heuristics used when the model does not call a tool, or is unavailable.

``FALLBACK_RULES`` is evaluated in order and the first match wins, so the more
specific rules sit before the generic ones ("team's progress" must not fall
through to the teams listing).
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from itertools import groupby

from linrelay.models import Issue, ToolInvocation, ToolResult, User
from linrelay.render import PRIORITY_EMOJI

DEFAULT_PRIORITY = 3
NEW_ISSUE_TITLE = "New Issue"

_ACTION_WORD = re.compile(r"\b(create|add|make|fix)\b", re.IGNORECASE)
_DETAIL_ACTION_WORD = re.compile(r"\b(fix|add|update|create)\b", re.IGNORECASE)
_PRIORITY_WORD = re.compile(r"\b(low|high|medium|urgent|critical)\b", re.IGNORECASE)
_TITLE_PREFIX = re.compile(
    r"^(?:(?:can|could|would)\s+you\s+|please\s+)?"
    r"(?:(?:create|add|make|fix)\s+(?:an?\s+)?(?:new\s+)?|new\s+)"
    r"(?:issue|task|bug)\b[\s:,-]*",
    re.IGNORECASE,
)
_GREETING = re.compile(r"\b(hello|hi|hey)\b", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Free-text heuristics
# ---------------------------------------------------------------------------


def infer_priority(message: str) -> int:
    lower = message.lower()
    if "critical" in lower or "urgent" in lower:
        return 1
    if "high" in lower:
        return 2
    if "low" in lower:
        return 4
    return DEFAULT_PRIORITY


def derive_title(message: str) -> str:
    """Strip a leading "create an issue"-style prefix; empty string when nothing is left."""
    remainder = _TITLE_PREFIX.sub("", message.strip(), count=1).strip().rstrip("?.! ")
    if not remainder:
        return ""
    return remainder[0].upper() + remainder[1:]


def parse_issue_from_message(message: str) -> dict:
    title = derive_title(message)
    if title:
        description = f"User requested: {message}"
    else:
        title, description = NEW_ISSUE_TITLE, message
    return {"title": title, "description": description, "priority": infer_priority(message)}


def has_specific_issue_details(message: str) -> bool:
    """An action verb plus either a subject (more than a few words) or a priority word."""
    if not _DETAIL_ACTION_WORD.search(message):
        return False
    return len(message.split()) > 3 or bool(_PRIORITY_WORD.search(message))


# ---------------------------------------------------------------------------
# Renderers for forced dispatch
# ---------------------------------------------------------------------------


def _emoji(issue: Issue) -> str:
    return PRIORITY_EMOJI.get(issue.priority, "🟢")


def render_my_issues(result: ToolResult) -> str:
    if result.is_error:
        return result.text
    issues = result.issues or []
    if not issues:
        return "📋 **No Issues Found**\n\nYou don't have any issues currently assigned to you."

    response = f"📋 **Issues Assigned to You** ({len(issues)} found)\n\n"
    for index, issue in enumerate(issues[:5], start=1):
        response += f"{index}. **{issue.identifier}**: {issue.title}\n"
        response += f"   {_emoji(issue)} {issue.state.name} • {issue.team.name}\n\n"
    if len(issues) > 5:
        response += f"... and {len(issues) - 5} more issues."
    return response.rstrip() + "\n"


def render_issue_summary(result: ToolResult) -> str:
    if result.is_error:
        return result.text
    issues = result.issues or []
    if not issues:
        return "❌ No issues found matching your criteria."

    summary = "\n".join(f"• **{i.identifier}**: {i.title} ({i.state.name})" for i in issues[:5])
    more = f"\n... and {len(issues) - 5} more issues" if len(issues) > 5 else ""
    return (
        f"📊 **Found {len(issues)} issues**\n\n{summary}{more}\n\n"
        "🔍 **Next steps**:\n"
        '- View specific issue: Ask me to "show details for [issue-id]"\n'
        '- Filter results: Ask me to "find [specific type] issues"\n'
        '- Update issues: Ask me to "update [issue-id]"'
    )


def render_team_progress(result: ToolResult) -> str:
    if result.is_error:
        return result.text
    issues = result.issues or []
    if not issues:
        return "📈 **No Team Issues Found**\n\nNo issues found for your team."

    response = f"📈 **Team Progress** ({len(issues)} issues)\n\n"
    # Group in order of first appearance, issues arrive most recently updated first.
    order = {name: n for n, name in reversed(list(enumerate(i.state.name for i in issues)))}
    ordered = sorted(issues, key=lambda i: order[i.state.name])
    for status, group in groupby(ordered, key=lambda i: i.state.name):
        members = list(group)
        response += f"### {status} ({len(members)})\n"
        for issue in members[:3]:
            assignee = issue.assignee.name if issue.assignee else "Unassigned"
            response += f"- **{issue.identifier}**: {issue.title}\n"
            response += f"  {_emoji(issue)} {assignee}\n"
        if len(members) > 3:
            response += f"  ... and {len(members) - 3} more\n"
        response += "\n"
    return response


def render_created(result: ToolResult) -> str:
    if result.is_error:
        return result.text
    return (
        result.text + "\n\n👍 **Tip**: Next time, describe the issue details and I'll create a more specific issue for you!"
    )


def render_text(result: ToolResult) -> str:
    return result.text or "Unable to fetch teams."


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FallbackRule:
    name: str
    triggers: tuple[str, ...]
    build: Callable[[str, User | None], ToolInvocation | None]
    render: Callable[[ToolResult], str]
    also_matches: Callable[[str], bool] | None = None

    def matches(self, message: str) -> bool:
        lower = message.lower()
        if any(trigger in lower for trigger in self.triggers):
            return True
        return bool(self.also_matches and self.also_matches(message))


def _my_issues(message: str, user: User | None) -> ToolInvocation | None:
    if user is None:
        return None
    return ToolInvocation(tool_name="search_issues", arguments={"assigneeId": user.id, "limit": 10})


def _create(message: str, user: User | None) -> ToolInvocation:
    return ToolInvocation(tool_name="create_issue", arguments=parse_issue_from_message(message))


def _creation_request(message: str) -> bool:
    return bool(_ACTION_WORD.search(message)) and has_specific_issue_details(message)


def _teams_question(message: str) -> bool:
    lower = message.lower()
    return "teams" in lower and "progress" not in lower


FALLBACK_RULES: tuple[FallbackRule, ...] = (
    FallbackRule(
        name="my_issues",
        triggers=("assigned to me", "my issues", "my tasks"),
        build=_my_issues,
        render=render_my_issues,
    ),
    FallbackRule(
        name="issue_search",
        triggers=("what issues", "show issues", "list issues", "find issues"),
        build=lambda message, user: ToolInvocation(tool_name="search_issues", arguments={"limit": 10}),
        render=render_issue_summary,
    ),
    FallbackRule(
        name="team_progress",
        triggers=("team progress", "team's progress"),
        build=lambda message, user: ToolInvocation(tool_name="search_issues", arguments={"limit": 20}),
        render=render_team_progress,
    ),
    FallbackRule(
        name="create",
        triggers=("create issue", "create an issue", "can you create", "new issue", "add issue", "make an issue"),
        build=_create,
        render=render_created,
        also_matches=_creation_request,
    ),
    FallbackRule(
        name="teams",
        triggers=("what teams", "list teams"),
        build=lambda message, user: ToolInvocation(tool_name="get_teams", arguments={}),
        render=render_text,
        also_matches=_teams_question,
    ),
)


def classify(message: str, rules: tuple[FallbackRule, ...] = FALLBACK_RULES) -> FallbackRule | None:
    """First rule whose triggers match the raw user message."""
    for rule in rules:
        if rule.matches(message):
            return rule
    return None


# ---------------------------------------------------------------------------
# Offline responder buckets
# ---------------------------------------------------------------------------


def offline_bucket(message: str) -> str:
    """Bucket for the offline responder: greeting, create, search, team or help."""
    lower = message.lower()
    if _GREETING.search(message):
        return "greeting"
    if _ACTION_WORD.search(message) and any(word in lower for word in ("issue", "bug", "task", "ticket")):
        return "create"
    if any(word in lower for word in ("search", "find", "show", "what", "my")):
        return "search"
    if "team" in lower or "project" in lower:
        return "team"
    return "help"

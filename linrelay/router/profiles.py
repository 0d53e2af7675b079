"""Router profiles: prompt, tool set, formatting and offline replies.

Two profiles ship. ``ASSISTANT`` answers through a second model call over the
tool result. ``PRODUCT_MANAGER`` writes richer issues and formats the first
tool result itself.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from linrelay.models import Team, ToolResult, ToolSpec, User
from linrelay.render import PRIORITY_EMOJI, priority_name
from linrelay.router.fallback import offline_bucket
from linrelay.router.tool_specs import assistant_tools, product_manager_tools


@dataclass(frozen=True)
class ExecutedCall:
    """One tool call the router ran, kept for result formatting."""

    tool_name: str
    arguments: dict
    result: ToolResult


@dataclass(frozen=True)
class RouterProfile:
    name: str
    build_prompt: Callable[[User | None, list[Team]], str]
    tools: Callable[[User | None], list[ToolSpec]]
    temperature: float
    offline_replies: dict[str, str] = field(default_factory=dict)
    follow_up: bool = True
    multi_tool: bool = False
    wants_teams: bool = False
    assign_to_requester: bool = False
    format_results: Callable[[list[ExecutedCall]], str] | None = None

    def offline_reply(self, message: str) -> str:
        bucket = offline_bucket(message)
        return self.offline_replies.get(bucket, self.offline_replies["help"])


# ---------------------------------------------------------------------------
# Assistant
# ---------------------------------------------------------------------------


def _assistant_prompt(user: User | None, teams: list[Team]) -> str:
    user_id = user.id if user else ""
    who = f"{user.name} (ID: {user.id})" if user else "Unknown (ID: unknown)"
    return f"""You are a Linear assistant. ALWAYS call the appropriate function based on the user's request.

## FUNCTION SELECTION RULES:

### USE search_issues FOR:
- "what issues are assigned to me" → search_issues with assigneeId: "{user_id}"
- "show my team's progress" → search_issues with teamId (no assignee filter)
- "find bugs" → search_issues with query: "bug"
- "show urgent issues" → search_issues (any issue search)

### USE create_issue FOR:
- "create an issue" → create_issue (ask for details if needed)
- Any problem description → create_issue
- "add a bug report" → create_issue

### TITLE GENERATION RULES:
When calling create_issue, ALWAYS transform user input:
- "the login button doesn't work" → Title: "Fix login button not working"
- "we need a dark mode feature" → Title: "Add dark mode feature"
Start with action verbs: Fix, Add, Update, Remove, Improve, etc.

### USE get_teams FOR:
- "what teams do I have" → get_teams
- "list my teams" → get_teams
- ONLY when explicitly asking about team information

### USE update_issue FOR:
- "update issue ABC-123" → update_issue
- "mark as done" → update_issue

## CRITICAL:
- NEVER call get_teams unless specifically asking about team information
- For "team progress", use search_issues with teamId, NOT get_teams

Current user: {who}"""


_ASSISTANT_REPLIES = {
    "greeting": (
        "Hi! I'm your Linear assistant. I can help you search for issues, create new ones, "
        "update existing issues, and get information about your teams. What would you like to do?"
    ),
    "create": (
        "I'd be happy to help you create an issue! To get started, I'll need to know which team to "
        "create it for. You can ask me 'What teams do I have access to?' first, or just tell me the "
        "issue details and team name."
    ),
    "search": (
        "I can help you search for issues! Try asking me things like:\n"
        "• 'What issues are assigned to me?'\n"
        "• 'Show me urgent bugs'\n"
        "• 'Find issues about login'\n"
        "• 'What's my team working on?'"
    ),
    "team": (
        "I can show you information about your teams and projects. Would you like me to list your "
        "teams or search for specific team-related information?"
    ),
    "help": (
        "I'm your Linear assistant! I can help you with:\n"
        '• 🔍 **Search issues**: "What\'s assigned to me?" or "Find bugs in the mobile app"\n'
        '• ✅ **Create issues**: "Create a bug report for login issues"\n'
        '• 📝 **Update issues**: "Mark issue ABC-123 as completed"\n'
        '• 👥 **Team info**: "What teams do I have access to?"\n\n'
        "What would you like to do?"
    ),
}

ASSISTANT = RouterProfile(
    name="assistant",
    build_prompt=_assistant_prompt,
    tools=assistant_tools,
    temperature=0.1,
    offline_replies=_ASSISTANT_REPLIES,
)


# ---------------------------------------------------------------------------
# Product manager
# ---------------------------------------------------------------------------


def _product_manager_prompt(user: User | None, teams: list[Team]) -> str:
    who = f"{user.name} ({user.email or 'no email'}, ID: {user.id})" if user else "User"
    user_id = user.id if user else "unknown"
    team_names = ", ".join(f"{t.name} ({t.key})" for t in teams) or "unknown"
    default_team = f"{teams[0].name} ({teams[0].id})" if teams else "the first team returned by get_teams"
    return f"""You are an expert Product Manager AI assistant. Your role is to deeply understand user requests and create high-quality, actionable Linear issues that capture the full context and requirements.

## Available Context:
- **Current User**: {who}
- **Teams**: {team_names}
- **Default Team**: Use {default_team} unless user specifies otherwise

## Issue Creation Framework:
- **Title**: [Area] Action + Object + Context, e.g. "[Mobile] Fix login button misalignment on iOS 17"
- **Description**: Problem Statement, User Impact, Current Behavior, Expected Behavior,
  Acceptance Criteria, Technical Notes, Priority Justification
- **Priority**: 1 (Critical: system down, data loss, security), 2 (High: major feature broken),
  3 (Medium: minor bugs with workarounds, enhancements), 4 (Low: polish, future work)
- **Assignment**: self-assign user-initiated requests, leave strategic items unassigned

## Function Usage Rules:
1. **MANDATORY**: Use search_issues for ANY query about finding, listing, or viewing issues
2. **CONDITIONAL**: For create_issue requests, ask for details first unless user provides sufficient information
3. **MANDATORY**: Use update_issue for ANY request to change, modify, or update issues
4. **MANDATORY**: Use get_teams if team context is needed

## Critical Function Triggers:
- "what issues", "show issues", "list issues", "find issues" → MUST use search_issues
- "assigned to me", "my issues", "my tasks" → MUST use search_issues with assigneeId: "{user_id}"
- "update", "change", "modify" + issue → MUST use update_issue
- "teams", "team list" → MUST use get_teams

## Smart Extraction Rules:
- If the user gives specific details ("add issue fix login bug", "fix amon feedback and its low"), create the issue immediately
- If the user is vague ("create an issue", "make a task"), ask for title, description and priority
- Priority keywords: urgent/critical=1, high=2, medium=3, low=4, default medium"""


def format_created(call: ExecutedCall) -> str:
    issue = call.result.issue
    if issue is None:
        return call.result.text
    priority = issue.priority or call.arguments.get("priority")
    return (
        "✅ **Issue Created**\n\n"
        f"**{issue.identifier}**: {issue.title}\n\n"
        "📋 **Details**:\n"
        f"- **Priority**: {PRIORITY_EMOJI.get(priority, '🟡')} {priority_name(priority)}\n"
        f"- **Status**: {issue.state.name}\n"
        f"- **Team**: {issue.team.name}\n"
        f"- **Assignee**: {issue.assignee.name if issue.assignee else 'Unassigned'}\n\n"
        "🎯 **Next Steps**:\n"
        "- Issue is now in your backlog\n"
        "- Review and adjust priority/assignment as needed\n\n"
        "🔗 **Quick Actions**:\n"
        f"- View issue: {issue.url}\n"
        f'- Update priority: Ask me to "set {issue.identifier} to high priority"\n'
        f'- Assign to someone: Ask me to "assign {issue.identifier} to [person]"'
    )


def format_searched(call: ExecutedCall) -> str:
    if call.result.is_error:
        return call.result.text
    issues = call.result.issues or []
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


def format_updated(call: ExecutedCall) -> str:
    result = call.result
    if result.is_error or result.issue is None:
        return f"❌ **Update Failed**: {result.text or 'Unknown error'}"
    issue = result.issue
    return (
        "✅ **Issue Updated**\n\n"
        f"**{issue.identifier}**: {issue.title}\n\n"
        "⚡ **Changes Applied**:\n"
        f"- **Status**: {issue.state.name}\n"
        f"- **Priority**: {priority_name(issue.priority)}\n"
        f"- **Assignee**: {issue.assignee.name if issue.assignee else 'Unassigned'}\n\n"
        "📊 **Current Status**: Ready for next steps"
    )


def format_product_manager_results(calls: list[ExecutedCall]) -> str:
    """Format the first executed call; later calls only had side effects."""
    if not calls:
        return "I processed your request but no actions were taken."
    first = calls[0]
    if first.tool_name == "create_issue" and first.result.success and first.result.issue:
        return format_created(first)
    if first.tool_name == "search_issues":
        return format_searched(first)
    if first.tool_name == "update_issue":
        return format_updated(first)
    return first.result.text


_PRODUCT_MANAGER_REPLIES = {
    "greeting": """👋 **Welcome to Linear Assistant**

I'm your AI Product Manager assistant. I can help you:

🎯 **Create Issues** with Product Manager quality
- Transform vague ideas into actionable tasks
- Generate comprehensive descriptions
- Set appropriate priorities and assignments

🔍 **Search & Analyze**
- Find issues by criteria
- Get intelligent summaries

📋 **Examples**:
- "The mobile app crashes when users try to login"
- "Find all urgent bugs assigned to me"
- "Create a task for improving signup flow"

What would you like to work on?""",
    "create": """🎯 **Creating Issues with Product Manager Quality**

To create a high-quality issue, tell me:

**What**: What's the problem or need?
**Impact**: Who is affected and how?
**Urgency**: How critical is this?

**Examples**:
- "Users can't checkout on mobile - this is blocking sales"
- "Add dark mode to reduce eye strain for power users"

What's the issue you'd like to create?""",
    "help": """🤖 **I'm Here to Help**

I didn't quite understand that, but I can help you with:

🎯 **Creating Issues** (my specialty):
- Transform any problem description into a structured issue

🔍 **Searching Issues**:
- "Find urgent bugs"
- "What issues are assigned to me?"

📊 **Team Management**:
- "List my teams"
- "Update issue status"

Try describing a problem or need, and I'll create a proper Linear issue for it!""",
}

PRODUCT_MANAGER = RouterProfile(
    name="product_manager",
    build_prompt=_product_manager_prompt,
    tools=product_manager_tools,
    temperature=0.3,
    offline_replies=_PRODUCT_MANAGER_REPLIES,
    follow_up=False,
    multi_tool=True,
    wants_teams=True,
    assign_to_requester=True,
    format_results=format_product_manager_results,
)

PROFILES = {profile.name: profile for profile in (ASSISTANT, PRODUCT_MANAGER)}

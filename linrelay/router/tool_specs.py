"""Tool schemas offered to the model."""

from linrelay.models import ToolSpec, User

TOOL_NAMES = ("search_issues", "create_issue", "update_issue", "get_teams")


def assistant_tools(user: User | None) -> list[ToolSpec]:
    """Tool set for the plain assistant profile; the current user id is baked into descriptions."""
    user_id = user.id if user else ""
    return [
        ToolSpec(
            name="search_issues",
            description=(
                "Search for issues in Linear. Use this for ANY query about finding issues, including "
                '"what issues are assigned to me", "show my tasks", "find bugs", etc.'
            ),
            parameters={
                "query": {"type": "string", "description": "Search query for issue content"},
                "teamId": {"type": "string", "description": "Optional team ID filter"},
                "stateId": {"type": "string", "description": "Issue state filter (e.g., for open issues)"},
                "assigneeId": {
                    "type": "string",
                    "description": f'Assignee ID filter. For "assigned to me" queries, use: "{user_id}".',
                },
                "limit": {"type": "number", "description": "Number of results (max 50)", "default": 10},
            },
        ),
        ToolSpec(
            name="create_issue",
            description=(
                "Create a new Linear issue. IMPORTANT: Transform user input into professional issue "
                "format with concise title and detailed description."
            ),
            parameters={
                "title": {
                    "type": "string",
                    "description": (
                        "Create a concise, professional title (max 60 chars). Transform user input like "
                        '"the login button is not working on mobile" into "Fix login button not working '
                        'on mobile". Start with action verbs: Fix, Add, Update, Remove, etc.'
                    ),
                },
                "description": {
                    "type": "string",
                    "description": (
                        "Expand the user input into a comprehensive description with:\n\n"
                        "**Problem**: What is the issue?\n**Impact**: Who is affected?\n"
                        "**Expected**: What should happen?\n**Steps**: How to reproduce (if applicable)\n"
                        "**Acceptance Criteria**: Definition of done"
                    ),
                },
                "teamId": {"type": "string", "description": "Team ID. Call get_teams first if unknown."},
                "priority": {
                    "type": "number",
                    "description": (
                        "Assess priority: 1 (Critical - system down), 2 (High - major impact), "
                        "3 (Medium - moderate impact), 4 (Low - minor/nice to have)"
                    ),
                },
                "labelIds": {"type": "array", "items": {"type": "string"}, "description": "Relevant issue label IDs"},
                "assigneeId": {
                    "type": "string",
                    "description": f'Assign to requester unless specified otherwise. Use: "{user_id}"',
                },
            },
            required=("title", "teamId", "description", "priority"),
        ),
        ToolSpec(
            name="update_issue",
            description="Update an existing issue",
            parameters={
                "issueId": {"type": "string", "description": "Issue ID to update"},
                "title": {"type": "string", "description": "New title"},
                "description": {"type": "string", "description": "New description"},
                "stateId": {"type": "string", "description": "New state ID"},
                "priority": {
                    "type": "number",
                    "description": "New priority: 0 (none), 1 (urgent), 2 (high), 3 (medium), 4 (low)",
                },
                "assigneeId": {"type": "string", "description": "New assignee ID"},
            },
            required=("issueId",),
        ),
        ToolSpec(name="get_teams", description="Get user's teams and projects"),
    ]


def product_manager_tools(user: User | None) -> list[ToolSpec]:
    user_id = user.id if user else ""
    return [
        ToolSpec(
            name="search_issues",
            description="Search for issues with intelligent filtering and analysis",
            parameters={
                "query": {"type": "string", "description": "Smart search query - can include natural language"},
                "teamId": {"type": "string", "description": "Team ID filter"},
                "stateId": {"type": "string", "description": "Issue state filter"},
                "assigneeId": {
                    "type": "string",
                    "description": f'Assignee ID filter. The current user is "{user_id}".',
                },
                "assigneeFilter": {
                    "type": "string",
                    "enum": ["current_user"],
                    "description": "Use \"current_user\" for issues assigned to the requester",
                },
                "priority": {"type": "number", "description": "Priority level filter (1-4)"},
                "limit": {"type": "number", "description": "Number of results to return", "default": 10},
            },
        ),
        ToolSpec(
            name="create_issue",
            description="Create a new issue with Product Manager-level quality and structure",
            parameters={
                "title": {
                    "type": "string",
                    "description": "Clear, action-oriented title following format: [Area] Action + Object + Context",
                },
                "description": {
                    "type": "string",
                    "description": (
                        "Comprehensive description with Problem, Impact, Expected Behavior, "
                        "Acceptance Criteria, and Technical Notes"
                    ),
                },
                "teamId": {"type": "string", "description": "Team ID - analyze context to choose appropriate team"},
                "priority": {
                    "type": "number",
                    "description": "Priority: 1 (Critical), 2 (High), 3 (Medium), 4 (Low) - based on impact analysis",
                },
                "labelIds": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Relevant label IDs based on issue type and area",
                },
                "assigneeId": {
                    "type": "string",
                    "description": (
                        "User ID to assign - use current user for user-initiated requests, "
                        "team lead for strategic items, or leave unassigned"
                    ),
                },
            },
            required=("title", "description", "teamId", "priority"),
        ),
        ToolSpec(
            name="update_issue",
            description="Update existing issues with context-aware changes",
            parameters={
                "issueId": {"type": "string", "description": "Issue ID to update"},
                "title": {"type": "string", "description": "Updated title if needed"},
                "description": {"type": "string", "description": "Updated description with context"},
                "stateId": {"type": "string", "description": "New state ID"},
                "priority": {
                    "type": "number",
                    "description": "Updated priority: 0 (none), 1 (urgent), 2 (high), 3 (medium), 4 (low)",
                },
                "assigneeId": {"type": "string", "description": "Updated assignee ID based on context"},
            },
            required=("issueId",),
        ),
        ToolSpec(name="get_teams", description="Get available teams for intelligent team selection"),
    ]

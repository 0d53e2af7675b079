"""Text rendering shared by the tool executors, router formatters and CLI."""

from linrelay.models import Issue, Team

# Linear's native scale, used for both create and update.
PRIORITY_NAME = {0: "No priority", 1: "Urgent", 2: "High", 3: "Medium", 4: "Low"}
PRIORITY_EMOJI = {0: "—", 1: "🔴", 2: "🟠", 3: "🟡", 4: "🟢"}
_PRIORITY_LABEL = {0: "— (No priority)", 1: "🔴 Urgent", 2: "🟠 High", 3: "🟡 Medium", 4: "🟢 Low"}


def priority_label(priority: int | None) -> str:
    if priority is None:
        return _PRIORITY_LABEL[0]
    return _PRIORITY_LABEL.get(priority, str(priority))


def priority_name(priority: int | None) -> str:
    return PRIORITY_NAME.get(priority or 0, str(priority))


def label_names(issue: Issue) -> str:
    return ", ".join(label.name for label in issue.labels)


def render_issue_details(issue: Issue) -> str:
    """Bullet list used after a create or update."""
    lines = [
        f"- ID: {issue.id}",
        f"- Team: {issue.team.name}",
        f"- State: {issue.state.name}",
        f"- Priority: {priority_label(issue.priority)}",
        f"- URL: {issue.url}",
        f"- Assignee: {issue.assignee.name}" if issue.assignee else "- Unassigned",
    ]
    if issue.labels:
        lines.append(f"\n🏷️ Labels: {label_names(issue)}")
    return "\n".join(lines)


def render_issue_list(issues: list[Issue]) -> str:
    entries = []
    for index, issue in enumerate(issues, start=1):
        assignee = f" • Assigned to {issue.assignee.name}" if issue.assignee else " • Unassigned"
        priority = f" • Priority {priority_name(issue.priority)}" if issue.priority > 0 else ""
        labels = f" • Labels: {label_names(issue)}" if issue.labels else ""
        entries.append(
            f"{index}. {issue.identifier}: {issue.title}\n"
            f"   📊 {issue.state.name} in {issue.team.name}{assignee}{priority}{labels}\n"
            f"   🔗 {issue.url}"
        )
    return "\n\n".join(entries)


def render_team_list(teams: list[Team]) -> str:
    """Numbered team list with workflow states. Pure, so repeated calls render identically."""
    entries = []
    for index, team in enumerate(teams, start=1):
        states = ", ".join(f"{s.name} ({s.type})" for s in team.states) if team.states else "No states available"
        entry = f"{index}. {team.name} ({team.key})\n   🆔 ID: {team.id}\n   📊 States: {states}"
        if team.description:
            entry += f"\n   📝 {team.description}"
        entries.append(entry)
    return "\n\n".join(entries)

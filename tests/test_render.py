"""Tests for linrelay.render."""

from linrelay.models import Issue, Team
from linrelay.render import priority_label, priority_name, render_issue_details, render_issue_list, render_team_list


def test_priority_label() -> None:
    assert priority_label(1) == "🔴 Urgent"
    assert priority_label(None) == "— (No priority)"
    assert priority_label(9) == "9"


def test_priority_name() -> None:
    assert priority_name(4) == "Low"
    assert priority_name(None) == "No priority"


def test_issue_details(issue: Issue) -> None:
    text = render_issue_details(issue)
    assert "- Team: Engineering" in text
    assert "- Priority: 🟠 High" in text
    assert "- Assignee: Jane Doe" in text
    assert text.endswith("🏷️ Labels: bug")


def test_issue_details_unassigned(issue: Issue) -> None:
    text = render_issue_details(issue.model_copy(update={"assignee": None, "labels": []}))
    assert "- Unassigned" in text
    assert "Labels" not in text


def test_issue_list_numbers_entries(issue: Issue) -> None:
    quiet = issue.model_copy(update={"identifier": "ENG-124", "priority": 0, "assignee": None, "labels": []})
    text = render_issue_list([issue, quiet])

    first, second = text.split("\n\n")
    assert first.startswith("1. ENG-123: Fix null check in auth middleware")
    assert "• Assigned to Jane Doe • Priority High • Labels: bug" in first
    assert second.startswith("2. ENG-124")
    assert "Unassigned" in second
    assert "Priority" not in second


def test_team_list(team: Team) -> None:
    bare = Team(id="team_ops", name="Ops", key="OPS", description="On-call")
    text = render_team_list([team, bare])

    assert "1. Engineering (ENG)" in text
    assert "📊 States: Todo (unstarted), In Progress (started)" in text
    assert "2. Ops (OPS)" in text
    assert "No states available" in text
    assert text.endswith("📝 On-call")
    assert render_team_list([team, bare]) == text

"""Shared test fixtures."""

from unittest.mock import AsyncMock

import pytest
from pytest_httpx import HTTPXMock

from linrelay.llm.base import ChatModel
from linrelay.models import Issue, Label, Team, TeamRef, User, WorkflowState
from linrelay.providers.base import TrackerClient
from linrelay.providers.linear import ENDPOINT
from tests.stubs import LinearStub


@pytest.fixture
def linear(httpx_mock: HTTPXMock) -> LinearStub:
    stub = LinearStub()
    httpx_mock.add_callback(stub, url=ENDPOINT, is_reusable=True)
    return stub


@pytest.fixture
def user() -> User:
    return User(id="u1", name="Jane Doe", email="jane@example.com")


@pytest.fixture
def team() -> Team:
    return Team(
        id="team_eng",
        name="Engineering",
        key="ENG",
        states=[
            WorkflowState(id="s1", name="Todo", type="unstarted"),
            WorkflowState(id="s2", name="In Progress", type="started"),
        ],
    )


@pytest.fixture
def issue(user: User) -> Issue:
    return Issue(
        id="issue_abc",
        identifier="ENG-123",
        title="Fix null check in auth middleware",
        description="The middleware throws when session is None.",
        url="https://linear.app/team/issue/ENG-123",
        state=WorkflowState(id="s2", name="In Progress", type="started"),
        team=TeamRef(id="team_eng", name="Engineering"),
        assignee=user,
        priority=2,
        labels=[Label(id="l1", name="bug")],
    )


@pytest.fixture
def tracker(user: User, team: Team, issue: Issue) -> AsyncMock:
    """A TrackerClient double with happy-path defaults."""
    mock = AsyncMock(spec=TrackerClient)
    mock.get_current_user.return_value = user
    mock.get_teams.return_value = [team]
    mock.get_issue.return_value = issue
    mock.search_issues.return_value = [issue]
    mock.create_issue.return_value = issue
    mock.update_issue.return_value = issue
    mock.get_workspace_name.return_value = "Acme"
    mock.test_connection.return_value = True
    return mock


@pytest.fixture
def model() -> AsyncMock:
    return AsyncMock(spec=ChatModel)

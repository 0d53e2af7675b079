"""Linear GraphQL API client."""

import asyncio
import logging
from typing import Any

import httpx

from linrelay.errors import NotFoundError, TrackerError
from linrelay.models import (
    UNKNOWN_STATE,
    UNKNOWN_TEAM,
    CreateIssueInput,
    Issue,
    Label,
    SearchIssuesInput,
    Team,
    TeamRef,
    UpdateIssueInput,
    User,
    WorkflowState,
)
from linrelay.providers.base import TrackerClient

logger = logging.getLogger(__name__)

ENDPOINT = "https://api.linear.app/graphql"

DEFAULT_SEARCH_LIMIT = 25
MAX_SEARCH_LIMIT = 50
MAX_TEAMS = 50

# Relations (state, team, assignee, labels) are fetched by separate queries so
# one failing lookup only degrades its own field.
_ISSUE_FIELDS = """
    id
    identifier
    title
    description
    priority
    url
    createdAt
    updatedAt
"""

_GET_ISSUE = f"""
query GetIssue($id: String!) {{
  issue(id: $id) {{{_ISSUE_FIELDS}  }}
}}
"""

_SEARCH_ISSUES = f"""
query SearchIssues($filter: IssueFilter, $first: Int) {{
  issues(filter: $filter, first: $first, orderBy: updatedAt) {{
    nodes {{{_ISSUE_FIELDS}    }}
  }}
}}
"""

_CREATE_ISSUE = f"""
mutation CreateIssue($input: IssueCreateInput!) {{
  issueCreate(input: $input) {{
    success
    issue {{{_ISSUE_FIELDS}    }}
  }}
}}
"""

_UPDATE_ISSUE = f"""
mutation UpdateIssue($id: String!, $input: IssueUpdateInput!) {{
  issueUpdate(id: $id, input: $input) {{
    success
    issue {{{_ISSUE_FIELDS}    }}
  }}
}}
"""

_ISSUE_STATE = """
query IssueState($id: String!) {
  issue(id: $id) { state { id name type } }
}
"""

_ISSUE_TEAM = """
query IssueTeam($id: String!) {
  issue(id: $id) { team { id name } }
}
"""

_ISSUE_ASSIGNEE = """
query IssueAssignee($id: String!) {
  issue(id: $id) { assignee { id name email } }
}
"""

_ISSUE_LABELS = """
query IssueLabels($id: String!) {
  issue(id: $id) { labels { nodes { id name } } }
}
"""

_LIST_TEAMS = """
query ListTeams($first: Int) {
  teams(first: $first) {
    nodes {
      id
      name
      key
      description
    }
  }
}
"""

_TEAM_STATES = """
query TeamStates($id: String!) {
  team(id: $id) { states { nodes { id name type } } }
}
"""

_VIEWER = """
query Viewer {
  viewer { id name email }
}
"""

_ORGANIZATION = """
query Organization {
  organization { name }
}
"""


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


class LinearClient(TrackerClient):
    def __init__(self, api_key: str, *, timeout: float = 30.0) -> None:
        if not api_key:
            raise TrackerError("Linear API key is required")
        self._http = httpx.AsyncClient(
            headers={
                "Authorization": api_key,
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    async def __aenter__(self) -> "LinearClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _gql(self, query: str, variables: dict | None = None) -> dict:
        try:
            response = await self._http.post(ENDPOINT, json={"query": query, "variables": variables or {}})
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise TrackerError("Linear API request timed out") from exc
        except httpx.HTTPError as exc:
            raise TrackerError(f"Linear API request failed: {exc}") from exc
        except ValueError as exc:
            raise TrackerError("Linear API returned a non-JSON response") from exc
        if not isinstance(data, dict):
            raise TrackerError("Linear API returned an unexpected response")
        if data.get("errors"):
            messages = "; ".join(e.get("message", str(e)) for e in data["errors"])
            raise TrackerError(f"Linear API error: {messages}")
        if not isinstance(data.get("data"), dict):
            raise TrackerError("Linear API response has no data")
        return data["data"]

    # -----------------------------------------------------------------------
    # Normalisation
    # -----------------------------------------------------------------------

    async def _relation(self, query: str, issue_id: str, field: str) -> Any:
        data = await self._gql(query, {"id": issue_id})
        return (data.get("issue") or {}).get(field)

    async def _issue_from_node(self, node: dict) -> Issue:
        state, team, assignee, labels = await asyncio.gather(
            self._relation(_ISSUE_STATE, node["id"], "state"),
            self._relation(_ISSUE_TEAM, node["id"], "team"),
            self._relation(_ISSUE_ASSIGNEE, node["id"], "assignee"),
            self._relation(_ISSUE_LABELS, node["id"], "labels"),
            return_exceptions=True,
        )
        for field, value in (("state", state), ("team", team), ("assignee", assignee), ("labels", labels)):
            if isinstance(value, BaseException):
                logger.warning("Could not load %s for issue %s: %s", field, node.get("identifier"), value)

        return Issue(
            id=node["id"],
            identifier=node["identifier"],
            title=node["title"],
            description=node.get("description") or None,
            url=node["url"],
            state=WorkflowState(**state) if isinstance(state, dict) else UNKNOWN_STATE,
            team=TeamRef(**team) if isinstance(team, dict) else UNKNOWN_TEAM,
            assignee=User(**assignee) if isinstance(assignee, dict) else None,
            priority=node.get("priority") or 0,
            labels=[Label(**n) for n in labels.get("nodes", [])] if isinstance(labels, dict) else [],
            created_at=node.get("createdAt"),
            updated_at=node.get("updatedAt"),
        )

    # -----------------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------------

    async def create_issue(self, data: CreateIssueInput) -> Issue:
        payload = _compact(
            {
                "title": data.title,
                "teamId": data.team_id,
                "description": data.description,
                "priority": data.priority,
                "assigneeId": data.assignee_id,
                "labelIds": data.label_ids,
                "stateId": data.state_id,
            }
        )
        result = (await self._gql(_CREATE_ISSUE, {"input": payload}))["issueCreate"]
        if not result["success"]:
            raise TrackerError("Linear issueCreate returned success=false")
        if not result.get("issue"):
            raise TrackerError("Linear issueCreate returned no issue")
        return await self._issue_from_node(result["issue"])

    async def update_issue(self, data: UpdateIssueInput) -> Issue:
        payload = _compact(
            {
                "title": data.title,
                "description": data.description,
                "stateId": data.state_id,
                "priority": data.priority,
                "assigneeId": data.assignee_id,
                "labelIds": data.label_ids,
            }
        )
        result = (await self._gql(_UPDATE_ISSUE, {"id": data.issue_id, "input": payload}))["issueUpdate"]
        if not result["success"]:
            raise TrackerError("Linear issueUpdate returned success=false")
        if not result.get("issue"):
            raise TrackerError("Linear issueUpdate returned no issue")
        return await self._issue_from_node(result["issue"])

    async def search_issues(self, data: SearchIssuesInput) -> list[Issue]:
        filters: dict[str, Any] = {}
        if data.team_id:
            filters["team"] = {"id": {"eq": data.team_id}}
        if data.assignee_id:
            filters["assignee"] = {"id": {"eq": data.assignee_id}}
        if data.state_id:
            filters["state"] = {"id": {"eq": data.state_id}}
        if data.priority is not None:
            filters["priority"] = {"eq": data.priority}

        first = min(data.limit or DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT)
        result = await self._gql(_SEARCH_ISSUES, {"filter": filters or None, "first": first})
        nodes = result["issues"]["nodes"][:first]

        formatted = await asyncio.gather(*(self._issue_from_node(n) for n in nodes), return_exceptions=True)
        issues: list[Issue] = []
        for node, issue in zip(nodes, formatted, strict=True):
            if isinstance(issue, BaseException):
                logger.warning("Skipping issue %s: %s", node.get("identifier"), issue)
                continue
            issues.append(issue)

        if data.query:
            needle = data.query.lower()
            issues = [
                i
                for i in issues
                if needle in i.title.lower()
                or needle in (i.description or "").lower()
                or needle in i.identifier.lower()
            ]
        return issues

    async def get_issue(self, issue_id: str) -> Issue:
        try:
            data = await self._gql(_GET_ISSUE, {"id": issue_id})
        except TrackerError as exc:
            if "not found" in str(exc).lower():
                raise NotFoundError(f"Issue '{issue_id}' not found in Linear") from exc
            raise
        node = data.get("issue")
        if not node:
            raise NotFoundError(f"Issue '{issue_id}' not found in Linear")
        return await self._issue_from_node(node)

    async def _team_states(self, team_id: str) -> list[WorkflowState]:
        data = await self._gql(_TEAM_STATES, {"id": team_id})
        return [WorkflowState(**n) for n in data["team"]["states"]["nodes"]]

    async def get_teams(self) -> list[Team]:
        nodes = (await self._gql(_LIST_TEAMS, {"first": MAX_TEAMS}))["teams"]["nodes"]
        states = await asyncio.gather(*(self._team_states(n["id"]) for n in nodes), return_exceptions=True)

        teams: list[Team] = []
        for node, team_states in zip(nodes, states, strict=True):
            if isinstance(team_states, BaseException):
                logger.warning("Could not load states for team %s: %s", node.get("key"), team_states)
                team_states = []
            teams.append(
                Team(
                    id=node["id"],
                    name=node["name"],
                    key=node["key"],
                    description=node.get("description") or None,
                    states=team_states,
                )
            )
        return teams

    async def get_current_user(self) -> User:
        viewer = (await self._gql(_VIEWER))["viewer"]
        if not viewer:
            raise TrackerError("Linear returned no viewer for this API key")
        return User(**viewer)

    async def get_workspace_name(self) -> str:
        organization = (await self._gql(_ORGANIZATION))["organization"] or {}
        return organization.get("name") or "Linear"

    async def test_connection(self) -> bool:
        try:
            await self.get_current_user()
        except TrackerError as exc:
            logger.info("Linear connection test failed: %s", exc)
            return False
        return True

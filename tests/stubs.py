"""GraphQL stub for Linear requests made through pytest-httpx."""

import json
import re
from collections.abc import Callable

import httpx

_OPERATION = re.compile(r"(?:query|mutation) (\w+)")


def graphql_error(message: str) -> httpx.Response:
    return httpx.Response(200, json={"errors": [{"message": message}]})


def issue_node(**overrides) -> dict:
    node = {
        "id": "issue_abc",
        "identifier": "ENG-123",
        "title": "Fix null check",
        "description": "Desc text",
        "priority": 2,
        "url": "https://linear.app/team/issue/ENG-123",
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-02T00:00:00Z",
    }
    node.update(overrides)
    return node


class LinearStub:
    """Answers Linear GraphQL requests by operation name.

    Sub-requests for one issue run concurrently, so routing on the operation
    name keeps responses deterministic regardless of arrival order.
    """

    def __init__(self) -> None:
        self.handlers: dict[str, Callable[[dict], dict | httpx.Response]] = {}
        self.calls: list[tuple[str, dict]] = []

    def on(self, operation: str, data: dict | Callable[[dict], dict | httpx.Response]) -> None:
        self.handlers[operation] = data if callable(data) else (lambda variables, d=data: d)

    def fail(self, operation: str, message: str = "boom") -> None:
        self.handlers[operation] = lambda variables: graphql_error(message)

    def relations(
        self,
        state: dict | None = None,
        team: dict | None = None,
        assignee: dict | None = None,
        labels: list[dict] | None = None,
    ) -> None:
        self.on("IssueState", {"issue": {"state": state or {"id": "s1", "name": "Todo", "type": "unstarted"}}})
        self.on("IssueTeam", {"issue": {"team": team or {"id": "team_eng", "name": "Engineering"}}})
        self.on("IssueAssignee", {"issue": {"assignee": assignee}})
        self.on("IssueLabels", {"issue": {"labels": {"nodes": labels or []}}})

    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]

    def variables(self, operation: str) -> dict:
        return next(variables for op, variables in self.calls if op == operation)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        operation = _OPERATION.search(body["query"]).group(1)
        self.calls.append((operation, body["variables"]))
        handler = self.handlers.get(operation)
        if handler is None:
            return graphql_error(f"unexpected operation {operation}")
        result = handler(body["variables"])
        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json={"data": result})

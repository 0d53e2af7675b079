"""Abstract base class for issue trackers."""

from abc import ABC, abstractmethod

from linrelay.models import CreateIssueInput, Issue, SearchIssuesInput, Team, UpdateIssueInput, User


class TrackerClient(ABC):
    @abstractmethod
    async def create_issue(self, data: CreateIssueInput) -> Issue: ...

    @abstractmethod
    async def update_issue(self, data: UpdateIssueInput) -> Issue: ...

    @abstractmethod
    async def search_issues(self, data: SearchIssuesInput) -> list[Issue]: ...

    @abstractmethod
    async def get_issue(self, issue_id: str) -> Issue: ...

    @abstractmethod
    async def get_teams(self) -> list[Team]: ...

    @abstractmethod
    async def get_current_user(self) -> User: ...

    @abstractmethod
    async def get_workspace_name(self) -> str: ...

    @abstractmethod
    async def test_connection(self) -> bool: ...

    async def aclose(self) -> None:
        """Release transport resources. No-op by default."""

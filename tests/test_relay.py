"""Integration tests for the FastAPI relay routes."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from linrelay.credentials import MemoryCredentialStore
from linrelay.errors import TrackerError
from linrelay.llm.base import ChatReply
from linrelay.server.app import create_app
from linrelay.llm.openai_chat import OpenAIChatModel
from linrelay.server.context import ServerContext, build_context
from linrelay.server.routes import NO_CREDENTIAL
from linrelay.settings import RelaySettings


def _settings(**overrides) -> RelaySettings:
    return RelaySettings(_env_file=None, **overrides)  # type: ignore[call-arg]


class TestRelayRoutes:
    @pytest.fixture
    def credentials(self) -> MemoryCredentialStore:
        return MemoryCredentialStore("lin_api_stored")

    @pytest.fixture
    def settings(self) -> RelaySettings:
        return _settings()

    @pytest.fixture
    def keys_used(self) -> list[str]:
        return []

    @pytest.fixture
    def context(
        self,
        settings: RelaySettings,
        credentials: MemoryCredentialStore,
        tracker: AsyncMock,
        model: AsyncMock,
        keys_used: list[str],
    ) -> ServerContext:
        def tracker_factory(api_key: str) -> AsyncMock:
            keys_used.append(api_key)
            return tracker

        return ServerContext(
            settings=settings,
            credentials=credentials,
            tracker_factory=tracker_factory,
            model_factory=lambda: model,
        )

    @pytest.fixture
    async def client(self, context: ServerContext) -> AsyncGenerator[AsyncClient]:
        transport = ASGITransport(app=create_app(context=context))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client

    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data

    async def test_chat_success_envelope(self, client: AsyncClient, model: AsyncMock, tracker: AsyncMock) -> None:
        model.complete.return_value = ChatReply(content="Hello from Linear!")
        response = await client.post("/chat", json={"message": "thanks"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "response": {"content": [{"type": "text", "text": "Hello from Linear!"}]},
        }
        tracker.aclose.assert_awaited_once()

    async def test_chat_prefers_workspace_key(
        self, client: AsyncClient, model: AsyncMock, keys_used: list[str]
    ) -> None:
        model.complete.return_value = ChatReply(content="ok")
        response = await client.post(
            "/chat",
            json={
                "message": "thanks",
                "workspaceApiKey": "lin_api_workspace",
                "context": [{"sender": "user", "content": "earlier"}],
            },
        )
        assert response.status_code == 200
        assert keys_used == ["lin_api_workspace"]

    async def test_chat_uses_stored_key(self, client: AsyncClient, model: AsyncMock, keys_used: list[str]) -> None:
        model.complete.return_value = ChatReply(content="ok")
        await client.post("/chat", json={"message": "thanks"})
        assert keys_used == ["lin_api_stored"]

    @pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "   "}])
    async def test_chat_requires_message(self, client: AsyncClient, body: dict) -> None:
        response = await client.post("/chat", json=body)
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Message is required"}

    async def test_chat_without_credential(
        self, client: AsyncClient, credentials: MemoryCredentialStore, keys_used: list[str]
    ) -> None:
        credentials.clear()
        response = await client.post("/chat", json={"message": "hi"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": NO_CREDENTIAL}
        assert keys_used == []

    async def test_malformed_context_is_rejected(self, client: AsyncClient) -> None:
        response = await client.post("/chat", json={"message": "hi", "context": [{"sender": "robot"}]})
        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_chat_internal_failure(self, context: ServerContext, tracker: AsyncMock) -> None:
        def broken_factory(api_key: str) -> AsyncMock:
            raise RuntimeError("client construction failed")

        app = create_app(
            context=ServerContext(
                settings=context.settings,
                credentials=context.credentials,
                tracker_factory=broken_factory,
                model_factory=context.model_factory,
            )
        )
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/chat", json={"message": "hi"})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "client construction failed"}

    async def test_model_failure_still_replies(self, client: AsyncClient, model: AsyncMock) -> None:
        model.complete.side_effect = RuntimeError("upstream exploded")
        response = await client.post("/chat", json={"message": "hello"})

        assert response.status_code == 200
        assert "Welcome to Linear Assistant" in response.json()["response"]["content"][0]["text"]

    async def test_validate_stores_key(
        self, client: AsyncClient, credentials: MemoryCredentialStore, tracker: AsyncMock
    ) -> None:
        response = await client.post("/linear/validate", json={"apiKey": "lin_api_new"})

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["workspace"] == "Acme"
        assert data["user"]["id"] == "u1"
        assert credentials.get() == "lin_api_new"

    async def test_validate_rejects_bad_key(
        self, client: AsyncClient, credentials: MemoryCredentialStore, tracker: AsyncMock
    ) -> None:
        tracker.test_connection.return_value = False
        response = await client.post("/linear/validate", json={"apiKey": "lin_api_bad"})

        assert response.json() == {"valid": False, "error": "Invalid API key or connection failed"}
        assert credentials.get() == "lin_api_stored"

    async def test_validate_lookup_failure_keeps_previous_key(
        self, client: AsyncClient, credentials: MemoryCredentialStore, tracker: AsyncMock
    ) -> None:
        tracker.get_workspace_name.side_effect = TrackerError("Linear API request timed out")
        response = await client.post("/linear/validate", json={"apiKey": "lin_api_new"})

        assert response.json()["valid"] is False
        assert credentials.get() == "lin_api_stored"

    async def test_validate_requires_key(self, client: AsyncClient) -> None:
        response = await client.post("/linear/validate", json={})
        assert response.status_code == 400
        assert response.json()["valid"] is False

    async def test_status_connected(self, client: AsyncClient) -> None:
        data = (await client.get("/linear/status")).json()
        assert data["connected"] is True
        assert data["workspace"] == "Acme"

    async def test_status_tracker_error(self, client: AsyncClient, tracker: AsyncMock) -> None:
        tracker.get_workspace_name.side_effect = TrackerError("Linear API request timed out")
        data = (await client.get("/linear/status")).json()
        assert data["connected"] is False
        assert "timed out" in data["message"]

    async def test_disconnect_then_status(self, client: AsyncClient, credentials: MemoryCredentialStore) -> None:
        response = await client.post("/linear/disconnect")
        assert response.json() == {"success": True, "message": "API key cleared successfully"}
        assert credentials.get() is None

        data = (await client.get("/linear/status")).json()
        assert data == {"connected": False, "message": "No API key stored"}

    async def test_switch_workspace(self, client: AsyncClient, credentials: MemoryCredentialStore) -> None:
        response = await client.post("/workspaces/switch", json={"workspaceId": "ws_2", "apiKey": "lin_api_two"})

        data = response.json()
        assert data["success"] is True
        assert data["workspace"]["id"] == "ws_2"
        assert data["workspace"]["name"] == "Acme"
        assert [t["key"] for t in data["workspace"]["teams"]] == ["ENG"]
        assert credentials.get() == "lin_api_two"

    async def test_switch_failure_keeps_previous_key(
        self, client: AsyncClient, credentials: MemoryCredentialStore, tracker: AsyncMock
    ) -> None:
        tracker.get_teams.side_effect = TrackerError("Linear API error: Rate limited")
        response = await client.post("/workspaces/switch", json={"workspaceId": "ws_2", "apiKey": "lin_api_two"})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Linear API error: Rate limited"}
        assert credentials.get() == "lin_api_stored"

    async def test_switch_requires_key(self, client: AsyncClient) -> None:
        response = await client.post("/workspaces/switch", json={"workspaceId": "ws_2"})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "API key is required"}


class TestBearerAuth:
    @pytest.fixture
    async def client(self, tracker: AsyncMock, model: AsyncMock) -> AsyncGenerator[AsyncClient]:
        context = ServerContext(
            settings=_settings(auth_token="s3cret"),
            credentials=MemoryCredentialStore("lin_api_stored"),
            tracker_factory=lambda api_key: tracker,
            model_factory=lambda: model,
        )
        transport = ASGITransport(app=create_app(context=context))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client

    async def test_missing_token(self, client: AsyncClient) -> None:
        response = await client.post("/chat", json={"message": "hi"})
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}

    async def test_wrong_token(self, client: AsyncClient) -> None:
        response = await client.get("/linear/status", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    async def test_valid_token(self, client: AsyncClient, model: AsyncMock) -> None:
        model.complete.return_value = ChatReply(content="ok")
        response = await client.post("/chat", json={"message": "thanks"}, headers={"Authorization": "Bearer s3cret"})
        assert response.status_code == 200

    async def test_health_is_open(self, client: AsyncClient) -> None:
        assert (await client.get("/health")).status_code == 200


class TestBuildContext:
    def test_chat_model_is_shared(self) -> None:
        context = build_context(_settings(openai_api_key="sk-test"), persist=False)
        model = context.model_factory()
        assert isinstance(model, OpenAIChatModel)
        assert context.model_factory() is model

    def test_no_openai_key_means_no_model(self) -> None:
        context = build_context(_settings(openai_api_key=None), persist=False)
        assert context.model_factory() is None

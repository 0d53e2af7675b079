"""HTTP route handlers for the chat relay."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from linrelay.errors import TrackerError
from linrelay.models import ConversationTurn
from linrelay.router.core import IntentRouter
from linrelay.router.profiles import PROFILES
from linrelay.server.context import ServerContext

logger = logging.getLogger(__name__)

NO_CREDENTIAL = "No Linear API key available. Please connect to Linear first."


class RelayError(Exception):
    """Rendered as ``{"success": false, "error": ...}`` with the given status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str | None = None
    context: list[ConversationTurn] | None = None
    workspace_api_key: str | None = Field(default=None, alias="workspaceApiKey")


class ApiKeyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_key: str | None = Field(default=None, alias="apiKey")
    workspace_id: str | None = Field(default=None, alias="workspaceId")


def get_context(request: Request) -> ServerContext:
    return request.app.state.context


def require_token(request: Request) -> None:
    """Bearer auth, enforced only when an auth token is configured."""
    expected = get_context(request).settings.auth_token
    if expected is None:
        return
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or token != expected.get_secret_value():
        raise RelayError(401, "Unauthorized")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


health_router = APIRouter(tags=["health"])
router = APIRouter(dependencies=[Depends(require_token)])


@health_router.get("/health")
async def health() -> dict:
    return {"status": "healthy", "timestamp": _timestamp()}


@router.post("/chat")
async def chat(body: ChatRequest, context: ServerContext = Depends(get_context)) -> JSONResponse:
    """Run one message through the intent router."""
    if not body.message or not body.message.strip():
        raise RelayError(400, "Message is required")

    api_key = body.workspace_api_key or context.default_api_key()
    if not api_key:
        raise RelayError(400, NO_CREDENTIAL)
    logger.info("Chat request (%s key)", "workspace" if body.workspace_api_key else "stored")

    try:
        tracker = context.tracker_factory(api_key)
        try:
            intent_router = IntentRouter(
                tracker,
                context.model_factory(),
                PROFILES[context.settings.router_profile],
                max_tokens=context.settings.openai_max_tokens,
                follow_up_max_tokens=context.settings.openai_follow_up_max_tokens,
            )
            reply = await intent_router.respond(body.message, body.context)
        finally:
            await tracker.aclose()
    except Exception as exc:
        logger.exception("Chat endpoint error")
        raise RelayError(500, str(exc) or "Internal server error") from exc

    logger.info("Chat reply: %d characters", len(reply))
    return JSONResponse({"success": True, "response": {"content": [{"type": "text", "text": reply}]}})


@router.post("/linear/validate")
async def validate_key(body: ApiKeyRequest, context: ServerContext = Depends(get_context)) -> JSONResponse:
    """Test an API key and store it as the default credential."""
    if not body.api_key:
        return JSONResponse({"valid": False, "error": "API key is required"}, status_code=400)

    tracker = context.tracker_factory(body.api_key)
    try:
        if not await tracker.test_connection():
            return JSONResponse({"valid": False, "error": "Invalid API key or connection failed"})
        user = await tracker.get_current_user()
        workspace = await tracker.get_workspace_name()
    except TrackerError as exc:
        logger.warning("Linear validation failed: %s", exc)
        return JSONResponse({"valid": False, "error": f"Validation failed: {exc}"})
    finally:
        await tracker.aclose()

    context.credentials.set(body.api_key)
    return JSONResponse(
        {
            "valid": True,
            "user": user.model_dump(),
            "workspace": workspace,
            "message": "API key stored successfully",
        }
    )


@router.get("/linear/status")
async def connection_status(context: ServerContext = Depends(get_context)) -> JSONResponse:
    api_key = context.default_api_key()
    if not api_key:
        return JSONResponse({"connected": False, "message": "No API key stored"})

    tracker = context.tracker_factory(api_key)
    try:
        if not await tracker.test_connection():
            return JSONResponse({"connected": False, "message": "Stored API key is invalid"})
        user = await tracker.get_current_user()
        workspace = await tracker.get_workspace_name()
    except TrackerError as exc:
        return JSONResponse({"connected": False, "message": f"Error checking connection: {exc}"})
    finally:
        await tracker.aclose()

    return JSONResponse(
        {"connected": True, "user": user.model_dump(), "workspace": workspace, "message": "Connected to Linear"}
    )


@router.post("/linear/disconnect")
async def disconnect(context: ServerContext = Depends(get_context)) -> JSONResponse:
    try:
        context.credentials.clear()
    except OSError as exc:
        logger.error("Could not clear stored API key: %s", exc)
        raise RelayError(500, "Failed to clear API key") from exc
    return JSONResponse({"success": True, "message": "API key cleared successfully"})


@router.post("/workspaces/switch")
async def switch_workspace(body: ApiKeyRequest, context: ServerContext = Depends(get_context)) -> JSONResponse:
    """Make another workspace's key the default and describe that workspace."""
    if not body.api_key:
        raise RelayError(400, "API key is required")

    tracker = context.tracker_factory(body.api_key)
    try:
        if not await tracker.test_connection():
            return JSONResponse({"success": False, "error": "Invalid API key or connection failed"})
        user = await tracker.get_current_user()
        workspace = await tracker.get_workspace_name()
        teams = await tracker.get_teams()
    except TrackerError as exc:
        logger.error("Workspace switch failed: %s", exc)
        raise RelayError(500, str(exc)) from exc
    finally:
        await tracker.aclose()

    context.credentials.set(body.api_key)
    logger.info("Switched workspace to %s", workspace)
    return JSONResponse(
        {
            "success": True,
            "workspace": {
                "id": body.workspace_id,
                "name": workspace,
                "user": user.model_dump(),
                "teams": [team.model_dump() for team in teams],
            },
        }
    )

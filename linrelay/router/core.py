"""Intent router: one chat message in, one markdown reply out."""

import json
import logging
from typing import Any

from linrelay.errors import ModelError, TrackerError
from linrelay.llm.base import ChatModel, ChatReply, ToolCall
from linrelay.models import ConversationTurn, Team, ToolInvocation, User
from linrelay.providers.base import TrackerClient
from linrelay.router.fallback import FALLBACK_RULES, FallbackRule, classify
from linrelay.router.profiles import PRODUCT_MANAGER, ExecutedCall, RouterProfile
from linrelay.tools.registry import execute_tool

logger = logging.getLogger(__name__)

CONTEXT_TURNS = 2
CLARIFICATION = (
    "I'm not sure what you'd like me to do. You can ask me to search issues, "
    "create an issue, update an issue, or list your teams."
)
EMPTY_FOLLOW_UP = "I completed the action but had trouble forming a response."


def fallback_reply(message: str, profile: RouterProfile = PRODUCT_MANAGER) -> str:
    """Canned reply used when the model is unavailable or the pipeline failed."""
    return profile.offline_reply(message)


def parse_arguments(call: ToolCall) -> dict[str, Any]:
    try:
        arguments = json.loads(call.arguments or "{}")
    except json.JSONDecodeError as exc:
        raise ModelError(f"Malformed arguments for {call.name}: {exc}") from exc
    if not isinstance(arguments, dict):
        raise ModelError(f"Arguments for {call.name} must be an object")
    return arguments


class IntentRouter:
    def __init__(
        self,
        tracker: TrackerClient,
        model: ChatModel | None,
        profile: RouterProfile = PRODUCT_MANAGER,
        *,
        max_tokens: int = 500,
        follow_up_max_tokens: int = 300,
        rules: tuple[FallbackRule, ...] = FALLBACK_RULES,
    ) -> None:
        self.tracker = tracker
        self.model = model
        self.profile = profile
        self.max_tokens = max_tokens
        self.follow_up_max_tokens = follow_up_max_tokens
        self.rules = rules

    async def respond(self, message: str, context: list[ConversationTurn] | None = None) -> str:
        """Answer one user message. Never raises."""
        if self.model is None:
            logger.info("No chat model configured, using offline replies")
            return fallback_reply(message, self.profile)
        try:
            return await self._respond(self.model, message, context or [])
        except Exception:
            logger.exception("Routing failed, falling back to offline reply")
            return fallback_reply(message, self.profile)

    async def _respond(self, model: ChatModel, message: str, context: list[ConversationTurn]) -> str:
        user = await self._current_user()
        teams = await self._teams() if self.profile.wants_teams else []

        messages: list[dict[str, Any]] = [
            {"role": "system", "content": self.profile.build_prompt(user, teams)},
            *(turn.as_message() for turn in context[-CONTEXT_TURNS:]),
            {"role": "user", "content": message},
        ]
        reply = await model.complete(
            messages,
            tools=[spec.to_openai() for spec in self.profile.tools(user)],
            max_tokens=self.max_tokens,
            temperature=self.profile.temperature,
        )

        if reply.tool_calls:
            calls = reply.tool_calls if self.profile.multi_tool else reply.tool_calls[:1]
            executed = []
            for call in calls:
                invocation = ToolInvocation(tool_name=call.name, arguments=parse_arguments(call))
                invocation = await self._enrich(invocation, user, teams)
                result = await execute_tool(self.tracker, invocation)
                executed.append(ExecutedCall(call.name, invocation.arguments, result))

            if self.profile.follow_up or self.profile.format_results is None:
                return await self._follow_up(model, messages, reply, calls, executed)
            return self.profile.format_results(executed)

        rule = classify(message, self.rules)
        if rule is not None:
            invocation = rule.build(message, user)
            if invocation is not None:
                logger.info("Model called no tool, dispatching %s rule", rule.name)
                invocation = await self._enrich(invocation, user, teams)
                return rule.render(await execute_tool(self.tracker, invocation))

        return reply.content or CLARIFICATION

    async def _follow_up(
        self,
        model: ChatModel,
        messages: list[dict[str, Any]],
        reply: ChatReply,
        calls: list[ToolCall],
        executed: list[ExecutedCall],
    ) -> str:
        # Replay only the calls that were honoured, each paired with its result.
        follow_up = [
            *messages,
            reply.assistant_message(calls),
            *(
                {"role": "tool", "tool_call_id": call.id, "content": done.result.to_tool_message()}
                for call, done in zip(calls, executed)
            ),
        ]
        final = await model.complete(
            follow_up,
            max_tokens=self.follow_up_max_tokens,
            temperature=self.profile.temperature,
        )
        return final.content or EMPTY_FOLLOW_UP

    async def _enrich(self, invocation: ToolInvocation, user: User | None, teams: list[Team]) -> ToolInvocation:
        arguments = dict(invocation.arguments)

        if arguments.pop("assigneeFilter", None) == "current_user" and user is not None:
            arguments.setdefault("assigneeId", user.id)

        if invocation.tool_name == "create_issue":
            if not arguments.get("teamId"):
                teams = teams or await self._teams()
                if teams:
                    arguments["teamId"] = teams[0].id
            if self.profile.assign_to_requester and not arguments.get("assigneeId") and user is not None:
                arguments["assigneeId"] = user.id

        return ToolInvocation(tool_name=invocation.tool_name, arguments=arguments)

    async def _current_user(self) -> User | None:
        try:
            return await self.tracker.get_current_user()
        except TrackerError as exc:
            logger.warning("Could not fetch current user: %s", exc)
            return None

    async def _teams(self) -> list[Team]:
        try:
            return await self.tracker.get_teams()
        except TrackerError as exc:
            logger.warning("Could not fetch teams: %s", exc)
            return []

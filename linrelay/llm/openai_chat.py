"""OpenAI chat-completions implementation of ChatModel."""

import logging
from typing import Any, cast

import httpx
import openai
from openai import AsyncOpenAI

from linrelay.errors import ModelError
from linrelay.llm.base import ChatModel, ChatReply, ToolCall

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


class OpenAIChatModel(ChatModel):
    """Chat completions with tool calling.

    Retries are disabled: a failed call surfaces as ModelError and the router
    answers from its offline fallback instead.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        *,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ModelError("OpenAI API key is required")
        self.client = AsyncOpenAI(
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
            http_client=http_client or httpx.AsyncClient(timeout=timeout),
        )
        self.model = model

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        max_tokens: int,
        temperature: float,
    ) -> ChatReply:
        params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if tools:
            params["tools"] = tools
            params["tool_choice"] = "auto"

        try:
            response = await self.client.chat.completions.create(**params)
        except openai.APITimeoutError as exc:
            raise ModelError(f"{self.model} timed out") from exc
        except openai.OpenAIError as exc:
            raise ModelError(f"Error calling {self.model}: {exc}") from exc

        if not response.choices:
            raise ModelError("No response from AI")
        choice = response.choices[0]
        message = choice.message

        tool_calls = [
            ToolCall(id=c.id, name=c.function.name, arguments=c.function.arguments or "{}")
            for c in cast(list[Any], message.tool_calls or [])
            if getattr(c, "function", None) is not None
        ]
        logger.info(
            "Model %s replied: finish_reason=%s tool_calls=%d",
            getattr(response, "model", self.model),
            choice.finish_reason,
            len(tool_calls),
        )
        return ChatReply(content=message.content, tool_calls=tool_calls, finish_reason=choice.finish_reason)

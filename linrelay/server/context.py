"""Dependencies shared by the relay routes."""

from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache

from linrelay.credentials import CredentialStore, MemoryCredentialStore, TomlCredentialStore
from linrelay.llm.base import ChatModel
from linrelay.llm.openai_chat import OpenAIChatModel
from linrelay.providers.base import TrackerClient
from linrelay.providers.linear import LinearClient
from linrelay.settings import CONFIG_PATH, RelaySettings


@dataclass(frozen=True)
class ServerContext:
    """Everything a request handler needs, injected so tests can swap in fakes.

    ``tracker_factory`` builds a fresh client per request from an API key.
    ``model_factory`` returns the shared chat model, or None when none is
    configured, in which case the router answers from its offline replies.
    """

    settings: RelaySettings
    credentials: CredentialStore
    tracker_factory: Callable[[str], TrackerClient]
    model_factory: Callable[[], ChatModel | None]

    def default_api_key(self) -> str | None:
        """Stored workspace key, else the one from settings."""
        stored = self.credentials.get()
        if stored:
            return stored
        return self.settings.linear_api_key.get_secret_value() if self.settings.linear_api_key else None


def build_context(settings: RelaySettings, *, persist: bool = True) -> ServerContext:
    """Production context: Linear over GraphQL, OpenAI chat completions."""
    credentials: CredentialStore = TomlCredentialStore(CONFIG_PATH) if persist else MemoryCredentialStore()

    def tracker_factory(api_key: str) -> TrackerClient:
        return LinearClient(api_key, timeout=settings.linear_timeout)

    @lru_cache(maxsize=1)
    def model_factory() -> ChatModel | None:
        if settings.openai_api_key is None:
            return None
        return OpenAIChatModel(
            settings.openai_api_key.get_secret_value(),
            settings.openai_model,
            timeout=settings.openai_timeout,
        )

    return ServerContext(
        settings=settings,
        credentials=credentials,
        tracker_factory=tracker_factory,
        model_factory=model_factory,
    )

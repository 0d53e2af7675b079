"""Storage for the default workspace credential."""

from abc import ABC, abstractmethod
from pathlib import Path

import tomlkit

CREDENTIAL_KEY = "workspace_api_key"


class CredentialStore(ABC):
    """Holds at most one default Linear API key."""

    @abstractmethod
    def get(self) -> str | None: ...

    @abstractmethod
    def set(self, api_key: str) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...


class MemoryCredentialStore(CredentialStore):
    def __init__(self, api_key: str | None = None) -> None:
        self._api_key = api_key

    def get(self) -> str | None:
        return self._api_key

    def set(self, api_key: str) -> None:
        self._api_key = api_key

    def clear(self) -> None:
        self._api_key = None


class TomlCredentialStore(CredentialStore):
    """Keeps the key under ``workspace_api_key`` in the config file.

    Writes round-trip through tomlkit so comments and other keys survive.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    def _load(self) -> tomlkit.TOMLDocument:
        if not self._path.exists():
            return tomlkit.document()
        return tomlkit.load(self._path.open())

    def get(self) -> str | None:
        value = self._load().get(CREDENTIAL_KEY)
        return str(value) if value else None

    def set(self, api_key: str) -> None:
        doc = self._load()
        doc[CREDENTIAL_KEY] = api_key
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(tomlkit.dumps(doc))

    def clear(self) -> None:
        if not self._path.exists():
            return
        doc = self._load()
        if CREDENTIAL_KEY in doc:
            del doc[CREDENTIAL_KEY]
            self._path.write_text(tomlkit.dumps(doc))

"""Error taxonomy shared by the tracker client, tools, router and relay."""


class ValidationError(ValueError):
    """Tool arguments are missing or out of range. Raised before any network call."""


class TrackerError(RuntimeError):
    """The Linear API failed or returned an unusable payload."""


class NotFoundError(TrackerError):
    """The referenced issue does not exist."""


class ModelError(RuntimeError):
    """The chat-completion call failed or returned a malformed tool call."""


class ConfigurationError(RuntimeError):
    """Startup configuration is unusable."""

"""Exception types raised by the discovery call demo services."""


class DiscoveryDemoError(Exception):
    """Base class for all errors raised by this package."""


class ScrapeError(DiscoveryDemoError):
    """Raised when a website cannot be fetched or parsed."""


class LLMServiceError(DiscoveryDemoError):
    """Raised when a chat completion request fails or returns unusable output."""


class AnalysisError(LLMServiceError):
    """Raised when the company analysis cannot be produced."""


class VoiceAgentError(DiscoveryDemoError):
    """Raised when the voice platform rejects or fails an agent request."""


class AgentProvisioningError(DiscoveryDemoError):
    """Raised when a voice agent cannot be provisioned for a session."""


class SessionStoreError(DiscoveryDemoError):
    """Raised when the session record store request fails."""


class SessionNotFoundError(SessionStoreError):
    """Raised when a session record does not exist."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class AssistantRunError(DiscoveryDemoError):
    """Raised when an assistant run ends in a non-completed state."""


class AssistantRunTimeout(AssistantRunError):
    """Raised when an assistant run does not finish within the allowed time."""


class MissingParameterError(DiscoveryDemoError):
    """Raised when a request is missing required parameters."""

    def __init__(self, *names: str) -> None:
        message = "Missing required parameters"
        if names:
            message = f"{message}: {', '.join(names)}"
        super().__init__(message)
        self.names = list(names)

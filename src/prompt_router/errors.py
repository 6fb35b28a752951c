"""Exception types raised by the routing core."""


class PromptRouterError(Exception):
    """Base class for all prompt-router errors."""


class InvalidPromptError(PromptRouterError, ValueError):
    """Raised when a prompt is empty or not a string."""


class NoEnginesRegisteredError(PromptRouterError):
    """Raised when a routing decision is requested with no candidate engines."""


class AnalysisClientError(PromptRouterError):
    """Raised by the completion client when the upstream call fails."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code

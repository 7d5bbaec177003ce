"""Base exception class for all agent-eval-specific errors."""


class AgentEvalError(Exception):
    """Base class for all agent-eval errors.

    ``retriable`` marks failures a caller may safely re-attempt (for example a
    transient judge or runtime outage).
    """

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable

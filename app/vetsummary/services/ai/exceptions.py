"""
Shared exceptions for AI service modules.
"""


class AIServiceError(Exception):
    """Raised when AI service operations fail."""

    pass


class AllModelsFailedError(AIServiceError):
    """Raised when every model in the fallback chain failed."""

    def __init__(self, attempts: list[tuple[str, Exception]]):
        self.attempts = attempts
        models = ", ".join(model for model, _ in attempts)
        last_error = attempts[-1][1] if attempts else None
        super().__init__(f"All models failed ({models}); last error: {last_error}")

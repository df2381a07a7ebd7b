"""Centralized exception classes for gemini-nanobanana-mcp.

Every failure the image pipeline or the storage layer can produce is one of
these types, so the tool layer can report it with a user-friendly message.
"""


class NanobananaError(Exception):
    """Base exception for all gemini-nanobanana-mcp errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, details: str | None = None):
        """Initialize the exception.

        Args:
            message: User-friendly error message.
            details: Additional technical details for debugging.
        """
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\n  Details: {self.details}"
        return self.message


class InputError(NanobananaError):
    """Raised when an image input is malformed or cannot be resolved to bytes."""

    pass


class CredentialError(NanobananaError):
    """Raised when the Gemini API key is missing or empty."""

    pass


class ProviderError(NanobananaError):
    """Base class for errors returned by the Gemini API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        details: str | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.body = body


class TransientProviderError(ProviderError):
    """Raised for 429 and 5xx responses. Retried by the request pipeline."""

    pass


class PermanentProviderError(ProviderError):
    """Raised when the API call failed and retrying will not help."""

    pass


class RequestTimeoutError(ProviderError, TimeoutError):
    """Raised when a single attempt exceeds its wall-clock budget."""

    def __init__(self, timeout: float):
        super().__init__(f"Request timed out after {timeout:g} seconds")
        self.timeout = timeout


class PersistenceError(NanobananaError):
    """Raised when a generated image cannot be written to disk."""

    pass

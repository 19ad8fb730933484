from __future__ import annotations


class BackendRequestError(RuntimeError):
    """Raised when the storefront backend rejects a request with a non-2xx status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


class BackendUnavailableError(ConnectionError):
    """Raised when the backend cannot be reached or does not answer in time."""


class BackendResponseError(ValueError):
    """Raised when backend payloads cannot be parsed into strongly typed models."""

"""Failure taxonomy for a console submission."""

from __future__ import annotations


class ConsoleError(Exception):
    """Base class for everything that can end a submission early."""


class ValidationError(ConsoleError):
    """The form produced no usable URLs."""


class TransportError(ConsoleError):
    """The backend could not be reached or the exchange was aborted."""


class ServerError(ConsoleError):
    """The backend answered with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class DecodeError(ConsoleError):
    """The backend answered 2xx but the body is not a result list."""


class PresentationWarning(ConsoleError):
    """The results view could not be opened. Results are already saved."""

"""
Error taxonomy for the site: network, validation and authorization failures.

Every error carries a ``message`` that is safe to show to the visitor.
"""

from __future__ import annotations


class PortfolioError(Exception):
    """Base class for errors surfaced to the visitor."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BackendError(PortfolioError):
    """The hosted backend could not be reached or failed unexpectedly."""


class AuthApiError(PortfolioError):
    """The auth service rejected the request."""

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


class InputError(PortfolioError):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class LoginRequired(PortfolioError):
    def __init__(
        self,
        next_path: str = "/",
        message: str = "Please log in to access this content",
    ):
        super().__init__(message)
        self.next_path = next_path


class AdminRequired(PortfolioError):
    def __init__(
        self, message: str = "You do not have permission to access the admin console"
    ):
        super().__init__(message)


class GenerationError(PortfolioError):
    """The text generation function failed."""

    def __init__(self, message: str, status: int = 500):
        super().__init__(message)
        self.status = status

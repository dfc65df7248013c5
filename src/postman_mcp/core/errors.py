"""Exception hierarchy for remote operations."""

from __future__ import annotations

from typing import Optional


class PostmanError(Exception):
    """Base class for expected failures of a remote operation."""


class ValidationError(PostmanError, ValueError):
    """A required input was missing. Raised before any network call."""


class RemoteError(PostmanError):
    """The remote API answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

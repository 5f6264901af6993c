# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Custom exceptions for the Notion service.

This module defines the exception hierarchy for Notion API operations:
- NotionError: Base exception for all Notion-related errors
- NotionAPIError: Error responses and connection failures
- NotionNotFoundError: Page or block not found (or not shared with the integration)
"""


class NotionError(Exception):
    """Base exception for all Notion-related errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        """Initialize Notion error.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class NotionAPIError(NotionError):
    """Error from the Notion API.

    Raised when the API returns an error response, or cannot be reached
    after all retries.

    Attributes:
        status_code: HTTP status code from API response.
        response_body: Raw response body if available.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
        details: dict | None = None,
    ):
        """Initialize Notion API error.

        Args:
            message: Human-readable error description.
            status_code: HTTP status code from API response.
            response_body: Raw response body if available.
            details: Optional dictionary with additional error context.
        """
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message, details)

    def __str__(self) -> str:
        """Return string representation with status code."""
        base = self.message
        if self.status_code:
            base = f"[{self.status_code}] {base}"
        if self.details:
            base = f"{base} - Details: {self.details}"
        return base


class NotionNotFoundError(NotionAPIError):
    """Requested page or block does not exist or is not shared."""

    def __init__(self, object_id: str, response_body: str | None = None):
        """Initialize not found error.

        Args:
            object_id: Id of the page or block that was requested.
            response_body: Raw response body if available.
        """
        self.object_id = object_id
        super().__init__(
            message=f"Notion object not found: {object_id}",
            status_code=404,
            response_body=response_body,
            details={"object_id": object_id},
        )

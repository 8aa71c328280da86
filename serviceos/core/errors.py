"""Domain error types.

Purpose:
- Give repositories, assistants and integrations a small typed vocabulary for
  the failures the API must report (missing records, tenancy violations,
  conflicting writes, upstream outages).
- Carry the HTTP status the API layer answers with, so route handlers can let
  these exceptions propagate untouched.

Usage:
- Raise a subclass with a human-readable message; the server's exception
  handlers turn it into ``{"detail": message}`` with ``status_code``.
"""

from __future__ import annotations

from typing import Any, Optional


class ServiceOSError(Exception):
    """Base error for ServiceOS domain failures.

    Args:
        message: Human-readable error description.
        details: Optional structured payload for diagnosis.
    """

    status_code: int = 400

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotAuthorizedError(ServiceOSError):
    """No authenticated user could be resolved."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", *, details: Optional[Any] = None) -> None:
        super().__init__(message, details=details)


class PermissionDeniedError(ServiceOSError):
    """The user is authenticated but lacks membership or role."""

    status_code = 403

    def __init__(self, message: str = "Insufficient permissions", *, details: Optional[Any] = None) -> None:
        super().__init__(message, details=details)


class NotFoundError(ServiceOSError):
    """A record does not exist inside the caller's organization."""

    status_code = 404


class ConflictError(ServiceOSError):
    """A write collides with an existing unique value."""

    status_code = 409


class InvalidOperationError(ServiceOSError):
    """The record's current state does not allow the requested change."""

    status_code = 409


class PayloadTooLargeError(ServiceOSError):
    """An uploaded payload exceeds the size limit."""

    status_code = 413


class IntegrationError(ServiceOSError):
    """A third-party service (storage, stock photos) failed.

    Args:
        message: Human-readable error description.
        upstream_status: HTTP status returned by the upstream service, if any.
        details: Optional structured payload from the upstream service.
    """

    status_code = 502

    def __init__(
        self, message: str, *, upstream_status: Optional[int] = None, details: Optional[Any] = None
    ) -> None:
        super().__init__(message, details=details)
        self.upstream_status = upstream_status


class AssistantError(ServiceOSError):
    """The assistant tool loop aborted; effects already committed stay committed."""

    status_code = 502

    def __init__(self, message: str = "Assistant request failed", *, details: Optional[Any] = None) -> None:
        super().__init__(message, details=details)

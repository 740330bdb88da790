"""
Error taxonomy for API calls. Every failed call raises exactly one of:

  TransportError   -- connection failure, timeout, or an unreadable body
  HttpStatusError  -- HTTP status other than 200
  ServiceError     -- vendor-reported error in Response.Error

All derive from CloudSDKError so callers can catch a single type.
"""

from __future__ import annotations


class CloudSDKError(Exception):
    """Base class for failed API calls."""

    def __init__(self, message: str, request_id: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.request_id = request_id

    def __str__(self) -> str:
        if self.request_id:
            return f"{self.message} (request_id={self.request_id})"
        return self.message


class TransportError(CloudSDKError):
    """Raised when the HTTP exchange itself fails. Not retried."""
    pass


class HttpStatusError(CloudSDKError):
    """Raised on a non-200 HTTP status, whatever the body says."""

    def __init__(self, status_code: int, message: str = "") -> None:
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code


class ServiceError(CloudSDKError):
    """Raised when the response envelope carries Response.Error."""

    def __init__(self, code: str, message: str, request_id: str = "") -> None:
        super().__init__(message, request_id)
        self.code = code

    def __str__(self) -> str:
        return f"[{self.code}] {super().__str__()}"

"""
Error taxonomy for the cart protection service.

Every error carries the HTTP status the API layer should answer with, a
human-readable message and, for upstream failures, the upstream payload so it
can be surfaced to the caller unchanged.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CartProtectionError(Exception):
    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.message, "error_type": self.error_type}
        if self.payload:
            body["details"] = self.payload
        return body


class InvalidArgument(CartProtectionError, ValueError):
    """Bad or missing request field. Always a client error, never retried."""

    status_code = 400
    error_type = "invalid_argument"


class NotFound(CartProtectionError):
    """Cart or product absent upstream."""

    status_code = 404
    error_type = "not_found"


class UpstreamError(CartProtectionError):
    """Any other non-2xx answer (or transport failure) from the cart store."""

    status_code = 502
    error_type = "upstream_error"

    def __init__(
        self,
        message: str,
        *,
        upstream_status: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, payload=payload)
        self.upstream_status = upstream_status

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.upstream_status is not None:
            body["upstream_status"] = self.upstream_status
        return body


class UpstreamAuthError(UpstreamError):
    """The cart store rejected our credentials. Operator actionable."""

    error_type = "upstream_auth_error"


class MalformedResponse(CartProtectionError):
    """The cart store returned something that is not a mapping."""

    status_code = 502
    error_type = "malformed_response"


__all__ = [
    "CartProtectionError",
    "InvalidArgument",
    "NotFound",
    "UpstreamError",
    "UpstreamAuthError",
    "MalformedResponse",
]

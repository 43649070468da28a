"""Typed gateway errors and their OpenAI-style error bodies.

WHY: Clients of an OpenAI-compatible API expect failures as
``{"error": {"message", "type"}}`` with a matching HTTP status. A small
exception hierarchy lets any layer raise a typed error and lets the HTTP
layer render it consistently.

HOW: GatewayError carries the message, error type, HTTP status, and the
optional code/param fields. Subclasses fix the type and status for the
common cases. to_body() builds the wire representation.

RULES:
- type strings follow the OpenAI vocabulary (invalid_request_error,
  server_error, ...)
- code and param only appear in the body when set
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """Base class for errors surfaced to API clients."""

    def __init__(
        self,
        message: str,
        type: str = "api_error",
        status_code: int = 500,
        code: str | None = None,
        param: str | None = None,
    ) -> None:
        self.message = message
        self.type = type
        self.status_code = status_code
        self.code = code
        self.param = param
        super().__init__(message)

    def to_body(self) -> dict[str, Any]:
        return error_body(self.message, self.type, code=self.code, param=self.param)


class InvalidRequestError(GatewayError):
    """The request is well-formed JSON but cannot be served."""

    def __init__(self, message: str, param: str | None = None) -> None:
        super().__init__(message, "invalid_request_error", 400, param=param)


class BackendError(GatewayError):
    """Raised when the inference backend fails or returns an error status.

    WHY: Callers need to tell backend failures apart from request errors;
    the HTTP layer reports them as 502 with type ``server_error``.

    RULES:
    - backend_status is the backend's HTTP status, or None for transport
      failures (connection refused, timeout)
    """

    def __init__(self, message: str, backend_status: int | None = None) -> None:
        self.backend_status = backend_status
        super().__init__(message, "server_error", 502)


class ServerError(GatewayError):
    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message, "server_error", 500)


def error_body(
    message: str,
    type: str = "server_error",
    code: str | None = None,
    param: str | None = None,
) -> dict[str, Any]:
    """Build an ``{"error": {...}}`` body, omitting unset optional fields."""
    error: dict[str, Any] = {"message": message, "type": type}
    if code:
        error["code"] = code
    if param:
        error["param"] = param
    return {"error": error}

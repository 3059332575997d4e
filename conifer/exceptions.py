# conifer/exceptions.py
from __future__ import annotations
import json
from typing import Any


class VectorDBError(Exception):
    """Base class for every error raised by conifer."""


class InvalidRequest(VectorDBError, ValueError):
    """A request failed local validation and was never sent."""


class ApiError(VectorDBError):
    """A non-2xx response from the service.

    ``error_code``, ``message`` and ``details`` are only populated when the
    body is the service's error envelope, otherwise just the raw ``body``
    is kept.
    """

    def __init__(
        self,
        status_code: int,
        body: str = "",
        *,
        error_code: str | None = None,
        message: str | None = None,
        details: Any = None,
    ):
        self.status_code = status_code
        self.body = body
        self.error_code = error_code
        self.message = message
        self.details = details
        super().__init__(self._render())

    def _render(self) -> str:
        out: dict[str, Any] = {"status_code": self.status_code, "body": self.body}
        if self.error_code:
            out["error_code"] = self.error_code
        if self.message:
            out["message"] = self.message
        if self.details:
            out["details"] = self.details
        return json.dumps(out, separators=(",", ":"))

    def __str__(self) -> str:
        return self._render()

    @classmethod
    def from_response(cls, status_code: int, body: str, prefix: str = "") -> "ApiError":
        error_code = message = details = None
        envelope = _decode_envelope(body)
        if envelope is not None:
            err = envelope.get("error") or {}
            error_code = err.get("code") or None
            message = err.get("message") or None
            details = err.get("details")
        if message and prefix:
            message = f"{prefix}: {message}"
        klass = api_error_for_status(status_code)
        return klass(status_code, body, error_code=error_code, message=message, details=details)


class BadRequest(ApiError): ...
class Unauthorized(ApiError): ...
class NotFound(ApiError): ...
class Conflict(ApiError): ...
class ServerError(ApiError): ...


def api_error_for_status(status_code: int) -> type[ApiError]:
    if status_code >= 500:
        return ServerError
    if status_code == 404:
        return NotFound
    if status_code == 409:
        return Conflict
    if status_code in (400, 422):
        return BadRequest
    if status_code in (401, 403):
        return Unauthorized
    return ApiError


def _decode_envelope(body: str) -> dict[str, Any] | None:
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    status = data.get("status")
    # a zero or missing status means the body is not an error envelope
    if not isinstance(status, int) or status == 0:
        return None
    return data

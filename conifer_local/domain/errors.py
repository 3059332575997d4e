from __future__ import annotations

import grpc


class DomainError(Exception):
    """Base for errors the emulator reports to callers.

    Each subclass knows its HTTP status, the error code placed in the
    response envelope and the matching gRPC status.
    """
    status = 500
    code = "UNKNOWN"
    grpc_code = grpc.StatusCode.UNKNOWN

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(DomainError):
    status = 404
    code = "NOT_FOUND"
    grpc_code = grpc.StatusCode.NOT_FOUND

    def __init__(self, what: str = "Resource"):
        super().__init__(f"{what} not found")
        self.what = what


class ConflictError(DomainError):
    status = 409
    code = "ALREADY_EXISTS"
    grpc_code = grpc.StatusCode.ALREADY_EXISTS


class BadRequestError(DomainError):
    status = 400
    code = "INVALID_ARGUMENT"
    grpc_code = grpc.StatusCode.INVALID_ARGUMENT


class ForbiddenError(DomainError):
    status = 403
    code = "FORBIDDEN"
    grpc_code = grpc.StatusCode.PERMISSION_DENIED


class UnauthorizedError(DomainError):
    status = 401
    code = "UNAUTHENTICATED"
    grpc_code = grpc.StatusCode.UNAUTHENTICATED


def error_envelope(status: int, code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}, "status": status}

from __future__ import annotations

from authsession.schemas.enums import ErrorCode


class AuthSessionError(Exception):
    """Base exception for all auth session errors."""

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, detail: str | None = None) -> None:
        self.message = message
        self.detail = detail
        super().__init__(message)


class ValidationError(AuthSessionError):
    status_code = 422
    error_code = ErrorCode.VALIDATION_FAILED


class AuthenticationError(AuthSessionError):
    status_code = 401
    error_code = ErrorCode.AUTH_FAILED


class ConflictError(AuthSessionError):
    status_code = 409
    error_code = ErrorCode.CONFLICT


class NetworkError(AuthSessionError):
    """Transport failure, timeout or a 5xx from the auth service."""

    status_code = 503
    error_code = ErrorCode.NETWORK_ERROR


class AuthServiceError(AuthSessionError):
    status_code = 502
    error_code = ErrorCode.SERVICE_ERROR


class NoActiveSessionError(AuthSessionError):
    status_code = 401
    error_code = ErrorCode.NO_ACTIVE_SESSION


class ClaimNotFoundError(AuthSessionError):
    status_code = 404
    error_code = ErrorCode.CLAIM_NOT_FOUND


class InvalidTokenError(AuthSessionError):
    status_code = 401
    error_code = ErrorCode.INVALID_TOKEN

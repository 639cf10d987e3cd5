from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION_FAILED = "VALIDATION_FAILED"
    AUTH_FAILED = "AUTH_FAILED"
    CONFLICT = "CONFLICT"
    NETWORK_ERROR = "NETWORK_ERROR"
    SERVICE_ERROR = "SERVICE_ERROR"
    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    CLAIM_NOT_FOUND = "CLAIM_NOT_FOUND"
    INVALID_TOKEN = "INVALID_TOKEN"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class SessionState(str, Enum):
    UNKNOWN = "UNKNOWN"
    AUTHENTICATED = "AUTHENTICATED"
    UNAUTHENTICATED = "UNAUTHENTICATED"

    @property
    def is_authenticated(self) -> bool:
        return self is SessionState.AUTHENTICATED

    def __bool__(self) -> bool:
        return self is SessionState.AUTHENTICATED


class StorageType(str, Enum):
    MEMORY = "memory"
    FILE = "file"

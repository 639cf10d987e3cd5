from __future__ import annotations

from typing import Any, Callable
from unittest.mock import AsyncMock

import jwt
import pytest

from authsession.clients.storage import MemoryStorage
from authsession.config import Settings
from authsession.services.auth_client import AuthServiceClient


@pytest.fixture
def settings() -> Settings:
    return Settings(
        AUTH_BASE_URL="https://auth.example.test",
        REFRESH_INTERVAL_SECONDS=60,
        AUTO_LOGIN=False,
        USE_COOKIES=False,
        MAX_RETRIES=3,
        BACKOFF_FACTOR=0,
    )


@pytest.fixture
def auth_client() -> AsyncMock:
    return AsyncMock(spec=AuthServiceClient)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def make_jwt() -> Callable[..., str]:
    def _make(**claims: Any) -> str:
        return jwt.encode(claims, "test-signing-key-0123456789abcdef0123", algorithm="HS256")

    return _make

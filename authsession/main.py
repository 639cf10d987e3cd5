from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from authsession.clients.http_client import close_http_client, create_http_client
from authsession.clients.session_manager import SessionManager
from authsession.clients.storage import ClientStorage, create_storage
from authsession.clients.token_holder import TokenHolder
from authsession.config import Settings
from authsession.core.logging import setup_logging
from authsession.services.auth_client import AuthServiceClient


@asynccontextmanager
async def open_session(
    settings: Settings | None = None,
    storage: ClientStorage | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncIterator[SessionManager]:
    """Build a SessionManager wired to the configured auth service.

    A caller-supplied ``http_client`` is left open on exit; one created here
    is closed.
    """
    settings = settings or Settings()
    setup_logging(log_level=settings.LOG_LEVEL, debug=settings.DEBUG)

    owns_client = http_client is None
    client = http_client if http_client is not None else create_http_client(settings)
    manager = SessionManager(
        auth_client=AuthServiceClient(client=client, settings=settings),
        storage=storage if storage is not None else create_storage(settings),
        settings=settings,
        token_holder=TokenHolder(),
    )
    try:
        yield manager
    finally:
        await manager.close()
        if owns_client:
            await close_http_client(client)

from __future__ import annotations

import httpx

from authsession.config import Settings


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    transport = httpx.AsyncHTTPTransport(
        retries=settings.MAX_RETRIES,
        verify=settings.VERIFY_SSL,
    )
    return httpx.AsyncClient(
        base_url=f"{settings.AUTH_BASE_URL.rstrip('/')}/auth",
        transport=transport,
        timeout=httpx.Timeout(settings.REQUEST_TIMEOUT),
        verify=settings.VERIFY_SSL,
        headers={"Accept": "application/json"},
        follow_redirects=True,
    )


async def close_http_client(client: httpx.AsyncClient) -> None:
    await client.aclose()

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from authsession.config import Settings
from authsession.core.exceptions import (
    AuthenticationError,
    AuthServiceError,
    AuthSessionError,
    ConflictError,
    NetworkError,
    ValidationError,
)
from authsession.core.logging import get_logger
from authsession.schemas.responses import MfaChallenge, MfaSecret, RemoteError, TokenPair
from authsession.utils.retry import with_retry

logger = get_logger(__name__)

_STATUS_ERRORS: dict[int, type[AuthSessionError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: AuthenticationError,
    408: NetworkError,
    409: ConflictError,
    422: ValidationError,
    429: NetworkError,
}


class AuthServiceClient:
    """Performs the named remote calls of the auth service and classifies failures."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings
        self._request_with_retry = with_retry(settings.MAX_RETRIES, settings.BACKOFF_FACTOR)(
            client.request
        )

    async def register(self, email: str, password: str) -> None:
        await self._request("POST", "/register", json={"email": email, "password": password})

    async def login(self, email: str, password: str, wants_cookie: bool) -> TokenPair | MfaChallenge:
        data = await self._request(
            "POST",
            "/login",
            json={"email": email, "password": password, "cookie": wants_cookie},
        )
        if isinstance(data, dict) and data.get("mfa"):
            return self._parse(MfaChallenge, data, "/login")
        return self._parse(TokenPair, data, "/login")

    async def logout(self, refresh_token: str | None, all: bool = False) -> None:
        await self._request("POST", "/logout", json={"all": all, "refresh_token": refresh_token})

    async def refresh_token(self, refresh_token: str | None) -> TokenPair:
        # Cookie mode sends no parameter; the cookie jar carries the token
        params = {"refresh_token": refresh_token} if refresh_token else None
        data = await self._request("GET", "/token/refresh", params=params)
        return self._parse(TokenPair, data, "/token/refresh")

    async def activate(self, ticket: str) -> None:
        await self._request("POST", "/activate", json={"ticket": ticket})

    async def change_email(self, new_email: str, bearer_token: str) -> None:
        await self._request(
            "POST", "/change-email", json={"new_email": new_email}, bearer=bearer_token
        )

    async def request_email_change(self, new_email: str) -> None:
        await self._request("POST", "/change-email/request", json={"new_email": new_email})

    async def confirm_email_change(self, ticket: str) -> None:
        await self._request("POST", "/change-email/change", json={"ticket": ticket})

    async def change_password(
        self, old_password: str, new_password: str, bearer_token: str
    ) -> None:
        await self._request(
            "POST",
            "/change-password",
            json={"old_password": old_password, "new_password": new_password},
            bearer=bearer_token,
        )

    async def request_password_change(self, email: str) -> None:
        await self._request("POST", "/change-password/request", json={"email": email})

    async def confirm_password_change(self, new_password: str, ticket: str) -> None:
        await self._request(
            "POST",
            "/change-password/change",
            json={"new_password": new_password, "ticket": ticket},
        )

    async def generate_mfa_secret(self, bearer_token: str) -> MfaSecret:
        data = await self._request("POST", "/mfa/generate", bearer=bearer_token)
        return self._parse(MfaSecret, data or {}, "/mfa/generate")

    async def enable_mfa(self, code: str, bearer_token: str) -> None:
        await self._request("POST", "/mfa/enable", json={"code": code}, bearer=bearer_token)

    async def disable_mfa(self, code: str, bearer_token: str) -> None:
        await self._request("POST", "/mfa/disable", json={"code": code}, bearer=bearer_token)

    async def verify_mfa_totp(self, code: str, ticket: str) -> TokenPair:
        data = await self._request("POST", "/mfa/totp", json={"code": code, "ticket": ticket})
        return self._parse(TokenPair, data, "/mfa/totp")

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        bearer: str | None = None,
    ) -> Any:
        headers = {"Authorization": f"Bearer {bearer}"} if bearer else None
        # Only idempotent reads are retried
        send = self._request_with_retry if method == "GET" else self._client.request

        try:
            resp = await send(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("auth_request_failed", method=method, path=path, error=str(exc))
            raise NetworkError(
                message="Auth service unreachable",
                detail=f"{method} {path}: {exc!r}",
            ) from exc

        if resp.is_success:
            logger.debug("auth_request_ok", method=method, path=path, status=resp.status_code)
            return self._json_or_none(resp)

        raise self._classify(resp, method, path)

    @staticmethod
    def _json_or_none(resp: httpx.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None

    @classmethod
    def _classify(cls, resp: httpx.Response, method: str, path: str) -> AuthSessionError:
        status = resp.status_code
        body = cls._json_or_none(resp)
        remote = RemoteError()
        if isinstance(body, dict):
            try:
                remote = RemoteError.model_validate(body)
            except PydanticValidationError:
                logger.debug("auth_error_body_unparsed", path=path, status=status)

        message = remote.message or remote.error or resp.reason_phrase or f"HTTP {status}"
        detail = f"{method} {path} -> {status}"
        logger.info("auth_request_rejected", method=method, path=path, status=status)

        if status >= 500:
            return NetworkError(message=message, detail=detail)
        error_cls = _STATUS_ERRORS.get(status, AuthServiceError)
        return error_cls(message=message, detail=detail)

    @staticmethod
    def _parse(model: type, data: Any, path: str) -> Any:
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            raise AuthServiceError(
                message="Unexpected response from auth service",
                detail=f"{path}: {exc.error_count()} validation error(s)",
            ) from exc

from __future__ import annotations

from typing import Any

import jwt

from authsession.core.exceptions import (
    ClaimNotFoundError,
    InvalidTokenError,
    NoActiveSessionError,
)


class Token:
    """A raw bearer token and its lazily decoded claims."""

    def __init__(self, raw: str) -> None:
        self.raw = raw
        self._claims: dict[str, Any] | None = None

    @property
    def claims(self) -> dict[str, Any]:
        if self._claims is None:
            try:
                # Signature is checked by the service; the client only reads the payload
                self._claims = jwt.decode(self.raw, options={"verify_signature": False})
            except jwt.PyJWTError as exc:
                raise InvalidTokenError(
                    message="Access token payload could not be decoded",
                    detail=str(exc),
                ) from exc
        return self._claims


class TokenHolder:
    """Holds at most one access token in memory."""

    def __init__(self) -> None:
        self._token: Token | None = None

    @property
    def has_token(self) -> bool:
        return self._token is not None

    def set(self, raw: str) -> None:
        self._token = Token(raw)

    def get(self) -> str:
        if self._token is None:
            raise NoActiveSessionError(message="No access token; the session is not authenticated")
        return self._token.raw

    def get_claim(self, name: str) -> Any:
        if self._token is None:
            raise NoActiveSessionError(message="No access token; the session is not authenticated")
        claims = self._token.claims
        if name not in claims:
            raise ClaimNotFoundError(message=f"Claim '{name}' not present in access token")
        return claims[name]

    def clear(self) -> None:
        self._token = None

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TokenPair(BaseModel):
    """Access token (and, outside cookie mode, refresh token) issued by the service."""

    model_config = ConfigDict(extra="ignore")

    jwt_token: str = Field(..., min_length=1)
    refresh_token: str | None = None
    jwt_expires_in: int | None = Field(default=None, description="Access token lifetime (ms)")


class MfaChallenge(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mfa: bool = True
    ticket: str


class MfaSecret(BaseModel):
    model_config = ConfigDict(extra="ignore")

    image_url: str | None = None
    otp_secret: str | None = None


class RemoteError(BaseModel):
    """Error body returned by the auth service, all fields optional."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    status_code: int | None = Field(default=None, alias="statusCode")
    error: str | None = None
    message: str | None = None

"""Identity provider backed by the service's token endpoints.

Holds the access/refresh token pair in memory. ``refresh_session`` exchanges
the refresh token at ``POST /api/v1/auth/refresh``. The access token's
``exp`` claim is read without verifying the signature; the server verifies.
"""

from __future__ import annotations

from datetime import UTC, datetime

import httpx
import jwt
import structlog

from teamgate_client.auth_context import Session
from teamgate_client.config import ClientConfig
from teamgate_client.errors import TransientFailure

log = structlog.get_logger(__name__)


def _expiry_of(access_token: str) -> datetime | None:
    try:
        claims = jwt.decode(access_token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    exp = claims.get("exp")
    return datetime.fromtimestamp(exp, UTC) if isinstance(exp, int | float) else None


class TokenIdentityProvider:
    def __init__(self, config: ClientConfig, http: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._http = http
        self._access_token: str | None = None
        self._refresh_token: str | None = None

    def set_tokens(self, access_token: str, refresh_token: str | None = None) -> Session:
        self._access_token = access_token
        self._refresh_token = refresh_token
        return Session(access_token=access_token, expires_at=_expiry_of(access_token))

    async def get_session(self) -> Session | None:
        if not self._access_token:
            return None
        return Session(access_token=self._access_token, expires_at=_expiry_of(self._access_token))

    async def refresh_session(self) -> Session | None:
        if not self._refresh_token:
            return None

        url = f"{self._config.base_url.rstrip('/')}/api/v1/auth/refresh"
        body = {"refresh_token": self._refresh_token}
        try:
            if self._http is not None:
                resp = await self._http.post(url, json=body)
            else:
                async with httpx.AsyncClient(timeout=self._config.request_timeout_s) as client:
                    resp = await client.post(url, json=body)
        except httpx.TransportError as exc:
            raise TransientFailure(f"Token refresh failed: {exc}", attempts=1) from exc

        if resp.status_code != 200:
            log.info("token_refresh_rejected", status_code=resp.status_code)
            self._access_token = None
            self._refresh_token = None
            return None

        data = resp.json()
        return self.set_tokens(data["access_token"], data.get("refresh_token"))

    async def sign_out(self) -> None:
        self._access_token = None
        self._refresh_token = None

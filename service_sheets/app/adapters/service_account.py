"""
OAuth2 access tokens for a Google service account.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Dict, Optional, Sequence

import httpx
import jwt

from shared.errors import UpstreamError
from shared.logging import get_logger

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"


class ServiceAccountTokenProvider:
    """Mints and reuses access tokens via the JWT bearer grant.

    A fresh token is requested when the cached one is within
    ``refresh_margin`` seconds of expiring.
    """

    def __init__(
        self,
        credentials: str | Dict[str, Any],
        scopes: Sequence[str],
        *,
        token_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        lifetime: int = 3600,
        refresh_margin: int = 60,
    ) -> None:
        info = json.loads(credentials) if isinstance(credentials, str) else dict(credentials)
        missing = [field for field in ("client_email", "private_key") if not info.get(field)]
        if missing:
            raise ValueError(f"Service account credentials missing {', '.join(missing)}")

        self.client_email: str = info["client_email"]
        self.private_key: str = info["private_key"]
        self.private_key_id: Optional[str] = info.get("private_key_id")
        self.token_url: str = token_url or info.get("token_uri") or "https://oauth2.googleapis.com/token"
        self.scopes = list(scopes)
        self.lifetime = lifetime
        self.refresh_margin = refresh_margin
        self.logger = get_logger("sheets.service_account")

        self._client = http_client or httpx.AsyncClient(timeout=10.0)
        self._owns_client = http_client is None
        self._token: Optional[str] = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def get_token(self) -> str:
        """Return a valid access token, refreshing it when needed."""
        if self._is_fresh():
            return self._token  # type: ignore[return-value]

        async with self._lock:
            if self._is_fresh():
                return self._token  # type: ignore[return-value]
            await self._refresh()
            return self._token  # type: ignore[return-value]

    def build_assertion(self, now: Optional[int] = None) -> str:
        """Sign the JWT assertion exchanged for an access token."""
        issued_at = int(time.time()) if now is None else now
        claims = {
            "iss": self.client_email,
            "scope": " ".join(self.scopes),
            "aud": self.token_url,
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        headers = {"kid": self.private_key_id} if self.private_key_id else None
        return jwt.encode(claims, self.private_key, algorithm="RS256", headers=headers)

    def _is_fresh(self) -> bool:
        return self._token is not None and time.time() < self._expires_at - self.refresh_margin

    async def _refresh(self) -> None:
        try:
            response = await self._client.post(
                self.token_url,
                data={"grant_type": JWT_BEARER_GRANT, "assertion": self.build_assertion()},
            )
        except httpx.HTTPError as exc:
            self.logger.error("Token request failed", error=str(exc))
            raise UpstreamError("oauth2", f"Token request failed: {exc}")

        if response.status_code != 200:
            message = _token_error_message(response)
            self.logger.error("Token request rejected", status_code=response.status_code, error=message)
            raise UpstreamError("oauth2", message, upstream_status=response.status_code)

        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict) or not payload.get("access_token"):
            self.logger.error("Token response without access token", status_code=response.status_code)
            raise UpstreamError(
                "oauth2",
                "Token response did not include an access token",
                upstream_status=response.status_code,
            )

        self._token = payload["access_token"]
        self._expires_at = time.time() + float(payload.get("expires_in", self.lifetime))
        self.logger.info("Access token refreshed", client_email=self.client_email)


def _token_error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"Token endpoint returned {response.status_code}"
    return payload.get("error_description") or payload.get("error") or response.text

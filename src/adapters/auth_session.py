"""Autenticación System-to-System (Basic Auth -> bearer token).

Reglas:
- Un único token en memoria por sesión; se reutiliza mientras le queden más de
  60 segundos de validez.
- El endpoint puede devolver el JWT en crudo o un JSON con el token dentro.
- La renovación va protegida por un `asyncio.Lock`: llamadas concurrentes no
  se autentican dos veces.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from typing import Any, Awaitable, Callable

import httpx
import jwt

from core.config import AppSettings
from core.domain.errors import AuthenticationFailed, CredentialsMissing, RequestTimeout
from core.domain.models import BearerSession
from core.resilience.retry import RetryPolicy, run_with_retry

logger = logging.getLogger(__name__)

REFRESH_MARGIN_SECONDS = 60.0
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600.0

TOKEN_FIELDS = ("AccessToken", "access_token", "IdToken", "id_token", "token")

_JWT_RE = re.compile(r"^[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*$")


def _jwt_expiry(token: str) -> float | None:
    """Lee el claim `exp` del payload JWT (sin verificar firma)."""

    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return None
    exp = payload.get("exp")
    if isinstance(exp, (int, float)) and not isinstance(exp, bool):
        return float(exp)
    return None


class AuthSession:
    def __init__(
        self,
        *,
        settings: AppSettings,
        client: httpx.AsyncClient,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._client = client
        self._retry_policy = retry_policy if retry_policy is not None else settings.retry_policy()
        self._clock = clock
        self._sleep = sleep
        self._session: BearerSession | None = None
        self._lock = asyncio.Lock()

    @property
    def session(self) -> BearerSession | None:
        return self._session

    def invalidate(self) -> None:
        self._session = None

    def _cached_token(self) -> str | None:
        current = self._session
        if current is not None and current.is_fresh(self._clock(), REFRESH_MARGIN_SECONDS):
            return current.token
        return None

    async def get_token(self) -> str:
        token = self._cached_token()
        if token is not None:
            logger.debug("Reusing cached bearer token")
            return token

        async with self._lock:
            token = self._cached_token()
            if token is not None:
                return token

            environment = self._settings.environment
            username, password = self._settings.credentials()
            if not username or not password:
                raise CredentialsMissing(environment)

            token_url = self._settings.environment_config().token_url
            logger.info("Authenticating against %s", token_url)
            body = await run_with_retry(
                lambda: self._request_token(token_url, username, password),
                self._retry_policy,
                operation_name=f"authenticate ({environment})",
                sleep=self._sleep,
            )
            self._session = self._session_from_body(body)
            logger.info("Bearer token obtained (expires_at=%s)", self._session.expires_at)
            return self._session.token

    async def _request_token(self, token_url: str, username: str, password: str) -> str:
        timeout = self._settings.auth_timeout_seconds
        try:
            response = await self._client.post(
                token_url,
                auth=httpx.BasicAuth(username, password),
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise RequestTimeout(f"POST {token_url}", timeout) from exc
        except httpx.TransportError as exc:
            raise AuthenticationFailed(
                str(exc) or type(exc).__name__,
                environment=self._settings.environment,
                transient=True,
            ) from exc

        if not response.is_success:
            raise AuthenticationFailed(
                f"HTTP {response.status_code}: {response.text[:100]}",
                response.status_code,
                self._settings.environment,
            )
        return response.text

    def _session_from_body(self, body: str) -> BearerSession:
        text = body.strip()
        now = self._clock()

        if _JWT_RE.match(text):
            expires_at = _jwt_expiry(text)
            if expires_at is None:
                expires_at = now + DEFAULT_TOKEN_LIFETIME_SECONDS
            return BearerSession(token=text, expires_at=expires_at)

        try:
            data: Any = json.loads(text)
        except ValueError as exc:
            raise AuthenticationFailed(
                "token response is neither a JWT nor JSON",
                environment=self._settings.environment,
            ) from exc

        token = None
        if isinstance(data, dict):
            token = next(
                (data[name] for name in TOKEN_FIELDS if isinstance(data.get(name), str) and data[name]),
                None,
            )
        if token is None:
            raise AuthenticationFailed("no token in response", environment=self._settings.environment)

        expires_in = data.get("expires_in", DEFAULT_TOKEN_LIFETIME_SECONDS)
        if not isinstance(expires_in, (int, float)) or isinstance(expires_in, bool) or expires_in <= 0:
            expires_in = DEFAULT_TOKEN_LIFETIME_SECONDS
        return BearerSession(token=token, expires_at=now + float(expires_in))

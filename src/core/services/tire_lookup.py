"""Orquestación de la consulta de pneumáticos GDSO.

Secuencia (sin concurrencia, una llamada de red tras otra):
1. Resolución ONS (DNS NAPTR) -> URL base de la API del fabricante.
2. Bearer token (Basic Auth, cacheado en memoria).
3. GET sobre las URLs candidatas hasta el primer 2xx.

Asimetría deliberada:
- Fallos de DNS/Auth son errores duros (problemas de configuración).
- Que ninguna URL devuelva datos es un resultado normal: `data=None`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence

import httpx

from adapters.auth_session import AuthSession
from adapters.http_client import build_async_client
from adapters.ons_resolver import EndpointResolver
from core.config import AppSettings
from core.domain.errors import ManufacturerApiError
from core.domain.identifiers import parse_sgtin, sgtin_to_gtin13
from core.domain.manufacturers import build_batch_urls, build_candidate_urls
from core.domain.models import EndpointResolution, ManufacturerProfile, TireResult
from core.interfaces.ports import EndpointResolverPort, TokenProvider
from core.resilience.cache import TTLCache

logger = logging.getLogger(__name__)

BATCH_CHUNK_SIZE = 100


def _chunks(items: Sequence[str], size: int) -> list[list[str]]:
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def _apply_transform(profile: ManufacturerProfile, payload: Any) -> Any:
    if profile.transform is None:
        return payload
    return profile.transform(payload)


class TireLookupService:
    """Punto de entrada del Core.

    Cada instancia posee su propio cache ONS, su sesión de autenticación y su
    cliente HTTP; varias instancias (p.ej. testing y production) no comparten estado.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        resolver: EndpointResolverPort | None = None,
        auth: TokenProvider | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings if settings is not None else AppSettings()
        self._owns_client = client is None
        self._client = client if client is not None else build_async_client(self._settings, transport=transport)
        self._cache: TTLCache[str, EndpointResolution] = TTLCache(
            max_size=self._settings.cache_max_size,
            ttl_seconds=self._settings.cache_ttl_seconds,
        )
        if resolver is None:
            resolver = EndpointResolver(
                settings=self._settings,
                client=self._client,
                cache=self._cache,
                sleep=sleep,
            )
        if auth is None:
            auth = AuthSession(settings=self._settings, client=self._client, sleep=sleep)
        self._resolver: EndpointResolverPort = resolver
        self._auth: TokenProvider = auth

    async def __aenter__(self) -> "TireLookupService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def cache_stats(self) -> dict[str, Any]:
        return self._cache.stats()

    async def resolve(self, identifier: str) -> EndpointResolution:
        return await self._resolver.resolve(identifier)

    async def get_tire_info(self, identifier: str) -> TireResult:
        resolution = await self._resolver.resolve(identifier)
        token = await self._auth.get_token()
        data, attempted = await self._fetch_tire(resolution, identifier, token)
        return TireResult(
            sgtin=identifier,
            manufacturer=resolution.manufacturer.name,
            gtin13=resolution.gtin13,
            api_url=resolution.api_url,
            data=data,
            attempted_urls=attempted,
        )

    async def get_tire_info_batch(self, identifiers: Sequence[str]) -> list[TireResult]:
        """Consulta varios SGTIN agrupados por fabricante (company prefix).

        Todos los identificadores se validan antes de la primera llamada de red.
        """

        groups: dict[str, list[str]] = {}
        gtins: dict[str, str] = {}
        for identifier in identifiers:
            parsed = parse_sgtin(identifier)
            gtins[identifier] = sgtin_to_gtin13(parsed)
            groups.setdefault(parsed.company_prefix, []).append(identifier)

        logger.info("Batch: %d identifier(s), %d manufacturer group(s)", len(identifiers), len(groups))

        results: list[TireResult] = []
        for prefix, group in groups.items():
            logger.info("Group %s: %d identifier(s)", prefix, len(group))
            resolution = await self._resolver.resolve(group[0])
            token = await self._auth.get_token()

            if len(group) > 1 and resolution.manufacturer.supports_batch:
                for chunk in _chunks(group, BATCH_CHUNK_SIZE):
                    results.extend(await self._lookup_chunk(resolution, chunk, token, gtins))
                continue

            for identifier in group:
                data, attempted = await self._fetch_tire(resolution, identifier, token)
                results.append(
                    TireResult(
                        sgtin=identifier,
                        manufacturer=resolution.manufacturer.name,
                        gtin13=gtins[identifier],
                        api_url=resolution.api_url,
                        data=data,
                        attempted_urls=attempted,
                    )
                )
        return results

    async def _lookup_chunk(
        self,
        resolution: EndpointResolution,
        chunk: list[str],
        token: str,
        gtins: dict[str, str],
    ) -> list[TireResult]:
        profile = resolution.manufacturer
        payload = await self._post_batch(resolution, chunk, token)

        results: list[TireResult] = []
        if isinstance(payload, list):
            for position, item in enumerate(payload):
                uii = item.get("uii") if isinstance(item, dict) else None
                if isinstance(uii, str) and uii:
                    sgtin = uii
                elif position < len(chunk):
                    sgtin = chunk[position]
                else:
                    logger.warning("Batch item #%d has no uii and no matching request slot", position)
                    continue
                results.append(
                    TireResult(
                        sgtin=sgtin,
                        manufacturer=profile.name,
                        gtin13=gtins.get(sgtin),
                        api_url=resolution.api_url,
                        data=_apply_transform(profile, item),
                    )
                )
            return results

        logger.info("Batch endpoint unavailable for %s, falling back to single lookups", profile.name)
        for identifier in chunk:
            data, attempted = await self._fetch_tire(resolution, identifier, token)
            results.append(
                TireResult(
                    sgtin=identifier,
                    manufacturer=profile.name,
                    gtin13=gtins[identifier],
                    api_url=resolution.api_url,
                    data=data,
                    attempted_urls=attempted,
                )
            )
        return results

    def _headers(self, profile: ManufacturerProfile, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            **profile.headers,
        }

    async def _fetch_tire(
        self,
        resolution: EndpointResolution,
        identifier: str,
        token: str,
    ) -> tuple[Any | None, list[str]]:
        profile = resolution.manufacturer
        urls = build_candidate_urls(profile, resolution.api_url, identifier)
        headers = self._headers(profile, token)
        attempted: list[str] = []

        for url in urls:
            attempted.append(url)
            logger.debug("GET %s", url)
            try:
                response = await self._client.get(
                    url,
                    headers=headers,
                    timeout=self._settings.api_timeout_seconds,
                )
            except httpx.HTTPError as exc:
                logger.warning("%s", ManufacturerApiError(profile.name, str(exc) or type(exc).__name__, url=url))
                continue

            if response.is_success:
                try:
                    payload = response.json()
                except ValueError:
                    logger.warning(
                        "%s",
                        ManufacturerApiError(profile.name, "invalid JSON body", response.status_code, url),
                    )
                    continue
                logger.info("Tire data received from %s", url)
                return _apply_transform(profile, payload), attempted

            if response.status_code == 404:
                logger.debug("404 on %s, trying next candidate", url)
                continue
            logger.warning(
                "%s",
                ManufacturerApiError(
                    profile.name,
                    f"{response.status_code} {response.reason_phrase}",
                    response.status_code,
                    url,
                ),
            )

        logger.info("No tire data for %s after %d candidate URL(s)", identifier, len(attempted))
        return None, attempted

    async def _post_batch(
        self,
        resolution: EndpointResolution,
        chunk: list[str],
        token: str,
    ) -> Any | None:
        profile = resolution.manufacturer
        headers = {**self._headers(profile, token), "Content-Type": "application/json"}

        for url in build_batch_urls(resolution.api_url):
            logger.debug("POST %s (%d UIIs)", url, len(chunk))
            try:
                response = await self._client.post(
                    url,
                    json=chunk,
                    headers=headers,
                    timeout=self._settings.api_timeout_seconds,
                )
            except httpx.HTTPError as exc:
                logger.warning("%s", ManufacturerApiError(profile.name, str(exc) or type(exc).__name__, url=url))
                continue

            if response.is_success:
                try:
                    return response.json()
                except ValueError:
                    logger.warning(
                        "%s",
                        ManufacturerApiError(profile.name, "invalid JSON body", response.status_code, url),
                    )
                    continue

            logger.warning(
                "%s",
                ManufacturerApiError(
                    profile.name,
                    f"{response.status_code} {response.reason_phrase}",
                    response.status_code,
                    url,
                ),
            )
        return None

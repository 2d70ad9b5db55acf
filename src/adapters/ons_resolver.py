"""Resolución ONS: SGTIN -> GTIN-13 -> FQDN -> NAPTR -> URL de la API.

Flujo:
1. Parse del SGTIN y cálculo del GTIN-13.
2. Cache por GTIN-13 (el número de serie no influye en el endpoint).
3. Consulta NAPTR vía DNS-over-HTTPS (JSON), con reintentos.
4. Selección del servicio `GetTireBySgtin`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from core.config import AppSettings
from core.domain.errors import DnsResolutionFailed, RequestTimeout, ServiceNotFound
from core.domain.identifiers import gtin_to_fqdn, parse_sgtin, sgtin_to_gtin13
from core.domain.manufacturers import get_manufacturer_profile
from core.domain.models import EndpointResolution
from core.domain.naptr import find_tire_service, parse_naptr_answers
from core.resilience.cache import TTLCache
from core.resilience.retry import RetryPolicy, run_with_retry

logger = logging.getLogger(__name__)


class EndpointResolver:
    """Descubre el endpoint del fabricante para un SGTIN.

    El cache pertenece a la instancia: dos resolvers (p.ej. testing y
    production) nunca comparten resoluciones.
    """

    def __init__(
        self,
        *,
        settings: AppSettings,
        client: httpx.AsyncClient,
        cache: TTLCache[str, EndpointResolution] | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._client = client
        self._cache: TTLCache[str, EndpointResolution] = cache if cache is not None else TTLCache(
            max_size=settings.cache_max_size,
            ttl_seconds=settings.cache_ttl_seconds,
        )
        self._retry_policy = retry_policy if retry_policy is not None else settings.retry_policy()
        self._sleep = sleep

    @property
    def cache(self) -> TTLCache[str, EndpointResolution]:
        return self._cache

    async def resolve(self, identifier: str) -> EndpointResolution:
        parsed = parse_sgtin(identifier)
        gtin13 = sgtin_to_gtin13(parsed)

        cached = self._cache.get(gtin13)
        if cached is not None:
            logger.debug("ONS cache hit for GTIN-13 %s", gtin13)
            return cached.model_copy(update={"parsed": parsed})

        fqdn = gtin_to_fqdn(gtin13, self._settings.environment_config().ons_suffix)
        manufacturer = get_manufacturer_profile(parsed.company_prefix)
        logger.info(
            "Resolving ONS for %s (manufacturer=%s, gtin13=%s, fqdn=%s)",
            identifier,
            manufacturer.name,
            gtin13,
            fqdn,
        )

        envelope = await run_with_retry(
            lambda: self._query_naptr(fqdn),
            self._retry_policy,
            operation_name=f"DNS NAPTR {fqdn}",
            sleep=self._sleep,
        )

        status = envelope.get("Status")
        if status != 0:
            raise ServiceNotFound(fqdn, gtin13, reason=f"DNS status {status}")
        answers = envelope.get("Answer") or []
        if not isinstance(answers, list) or not answers:
            raise ServiceNotFound(fqdn, gtin13)

        services = parse_naptr_answers(answers)
        tire_service = find_tire_service(services, fqdn=fqdn, gtin13=gtin13)

        resolution = EndpointResolution(
            gtin13=gtin13,
            fqdn=fqdn,
            manufacturer=manufacturer,
            api_url=tire_service.url,
            services=services,
        )
        self._cache.set(gtin13, resolution)
        logger.info("Tire service for %s: %s", manufacturer.name, tire_service.url)
        return resolution.model_copy(update={"parsed": parsed})

    async def _query_naptr(self, fqdn: str) -> dict[str, Any]:
        timeout = self._settings.dns_timeout_seconds
        try:
            response = await self._client.get(
                self._settings.dns_resolver_url,
                params={"name": fqdn, "type": "NAPTR"},
                headers={"Accept": "application/dns-json"},
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise RequestTimeout(f"DNS NAPTR {fqdn}", timeout) from exc
        except httpx.TransportError as exc:
            raise DnsResolutionFailed(fqdn, str(exc) or type(exc).__name__, transient=True) from exc

        if not response.is_success:
            raise DnsResolutionFailed(fqdn, f"HTTP {response.status_code}", response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise DnsResolutionFailed(fqdn, "invalid JSON envelope") from exc
        if not isinstance(data, dict):
            raise DnsResolutionFailed(fqdn, "unexpected JSON envelope")
        return data

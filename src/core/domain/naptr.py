"""Parsing de registros NAPTR (respuesta DNS-over-HTTPS en JSON).

Cada `Answer[].data` es un string con uno de estos formatos:
- RFC con comillas:  order pref "flags" "service" "regexp" replacement
- sin comillas:      order pref flags service !regexp! replacement

Los registros que no encajan se ignoran: el enriquecimiento es best-effort.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from core.domain.errors import ServiceNotFound
from core.domain.models import ServiceDescriptor

logger = logging.getLogger(__name__)

TIRE_SERVICE_MARKER = "GetTireBySgtin"

_QUOTED_RE = re.compile(r'^(\d+)\s+(\d+)\s+"([^"]*)"\s+"([^"]*)"\s+"([^"]*)"\s+(\S+)$')
_BARE_RE = re.compile(r"^(\d+)\s+(\d+)\s+(\S+)\s+(\S+)\s+(!.*!)\s+(\S+)$")
_URL_RE = re.compile(r"!.*!(https?://[^!]+)!")


def parse_naptr_record(data: str) -> ServiceDescriptor | None:
    text = data.strip()
    match = _QUOTED_RE.match(text) or _BARE_RE.match(text)
    if match is None:
        return None

    order, preference, _flags, service, regexp, _replacement = match.groups()
    url_match = _URL_RE.search(regexp)
    if url_match is None:
        return None

    return ServiceDescriptor(
        service=service,
        url=url_match.group(1),
        order=int(order),
        preference=int(preference),
    )


def parse_naptr_answers(answers: Iterable[dict[str, Any]]) -> list[ServiceDescriptor]:
    """Convierte `Answer[]` en descriptores, respetando el orden DNS."""

    services: list[ServiceDescriptor] = []
    for record in answers:
        if not isinstance(record, dict):
            continue
        data = record.get("data")
        if not isinstance(data, str):
            continue
        descriptor = parse_naptr_record(data)
        if descriptor is None:
            logger.debug("Unrecognised NAPTR record skipped: %s", data)
            continue
        services.append(descriptor)
    return services


def find_tire_service(
    services: Iterable[ServiceDescriptor],
    *,
    fqdn: str,
    gtin13: str | None = None,
) -> ServiceDescriptor:
    for service in services:
        if TIRE_SERVICE_MARKER in service.service:
            return service
    raise ServiceNotFound(fqdn, gtin13, reason=f"service {TIRE_SERVICE_MARKER} not found")

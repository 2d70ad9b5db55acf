"""Contratos de los colaboradores del orquestador.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Permite sustituir resolver/autenticación por stubs en tests sin acoplar
  el Core a httpx.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import EndpointResolution


@runtime_checkable
class TokenProvider(Protocol):
    """Fuente de bearer tokens (una sola sesión por instancia)."""

    async def get_token(self) -> str:
        """Devuelve un token válido, renovándolo si hace falta."""

        ...


@runtime_checkable
class EndpointResolverPort(Protocol):
    """Resolución SGTIN -> endpoint de la API del fabricante."""

    async def resolve(self, identifier: str) -> EndpointResolution:
        ...

"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Los resultados se serializan tal cual a JSON (CLI `--json`, exportación batch).

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class ParsedIdentifier(BaseModel):
    """SGTIN descompuesto en sus tres segmentos numéricos.

    Inmutable: el mismo objeto se reutiliza entre resolución y llamada a la API.
    """

    model_config = ConfigDict(frozen=True)

    company_prefix: str = Field(
        ...,
        pattern=r"^\d+$",
        description="GS1 Company Prefix (identifica al fabricante).",
    )
    indicator_item_ref: str = Field(
        ...,
        pattern=r"^\d+$",
        description="Dígito indicador seguido de la referencia de artículo.",
    )
    serial_number: str = Field(
        ...,
        pattern=r"^\d+$",
        description="Número de serie del pneumático.",
    )
    raw: str = Field(
        ...,
        min_length=1,
        description="URN original tal como se recibió.",
    )


class ServiceDescriptor(BaseModel):
    """Un servicio publicado en un registro NAPTR."""

    model_config = ConfigDict(frozen=True)

    service: str = Field(..., description="Etiqueta de servicio NAPTR (p.ej. 'GetTireBySgtin').")
    url: str = Field(..., description="URL absoluta extraída del campo regexp.")
    order: int | None = Field(default=None, ge=0)
    preference: int | None = Field(default=None, ge=0)


class ManufacturerProfile(BaseModel):
    """Entrada de la tabla estática de fabricantes.

    Por qué un perfil y no herencia:
    - Cada fabricante interpreta la especificación GDSO a su manera; basta con
      datos (plantillas de URL, cabeceras) y, si hace falta, una función pura
      `transform` aplicada al payload.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    country: str | None = Field(default=None, max_length=2)
    url_templates: tuple[str, ...] = Field(
        ...,
        min_length=1,
        description="Plantillas con `{base_url}` y `{sgtin}`.",
    )
    encode_sgtin: bool = Field(
        default=True,
        description="Si la primera URL candidata lleva el SGTIN percent-encoded.",
    )
    headers: dict[str, str] = Field(default_factory=dict)
    transform: Callable[[Any], Any] | None = Field(
        default=None,
        exclude=True,
        description="Transformación opcional del payload de la API.",
    )
    supports_batch: bool = Field(default=True)

    @property
    def is_generic(self) -> bool:
        return len(self.url_templates) > 1


class EndpointResolution(BaseModel):
    """Resultado de la resolución ONS para un GTIN-13.

    `parsed` es el único campo por-identificador; la copia en caché lo deja a None.
    """

    model_config = ConfigDict(frozen=True)

    gtin13: str = Field(..., pattern=r"^\d{13}$")
    fqdn: str = Field(..., min_length=1)
    manufacturer: ManufacturerProfile
    api_url: str = Field(..., min_length=1)
    services: list[ServiceDescriptor] = Field(default_factory=list)
    parsed: ParsedIdentifier | None = None


class BearerSession(BaseModel):
    """Token en memoria con su expiración (epoch, segundos)."""

    token: str = Field(..., min_length=1)
    expires_at: float

    def is_fresh(self, now: float, margin_seconds: float = 60.0) -> bool:
        return now < self.expires_at - margin_seconds


class TireResult(BaseModel):
    """Resultado de una consulta de pneumático.

    `data=None` significa "sin datos disponibles", no un error: el SGTIN puede no
    estar registrado todavía en la base del fabricante.
    """

    sgtin: str
    manufacturer: str
    gtin13: str | None = None
    api_url: str | None = None
    data: Any | None = None
    attempted_urls: list[str] = Field(default_factory=list)
    error: dict[str, Any] | None = Field(
        default=None,
        description="Error serializado cuando el identificador no pudo procesarse (solo batch CLI).",
    )

"""Tabla de fabricantes GDSO y construcción de URLs candidatas.

Fuente de los prefijos: miembros GDSO (Bridgestone, Continental, Giti, Goodyear,
Hankook, Kumho, Michelin, Nexen, Pirelli, Prometeon, Sumitomo, Toyo, Yokohama)
y bases GS1/UPC.

Por qué varias URLs:
- Cada fabricante implementa la especificación GDSO con pequeñas diferencias
  (`/tire/{sgtin}` vs `/{sgtin}`, SGTIN codificado o no). Probamos varias formas
  y nos quedamos con la primera que responde 2xx.
"""

from __future__ import annotations

import re
from urllib.parse import quote

from core.domain.models import ManufacturerProfile

ROOT_TEMPLATE = "{base_url}/{sgtin}"
TIRE_TEMPLATE = "{base_url}/tire/{sgtin}"
TYRE_TEMPLATE = "{base_url}/tyre/{sgtin}"


def _profile(name: str, country: str, template: str) -> ManufacturerProfile:
    return ManufacturerProfile(name=name, country=country, url_templates=(template,))


MANUFACTURERS: dict[str, ManufacturerProfile] = {
    # Michelin
    "086699": _profile("Michelin", "FR", TIRE_TEMPLATE),
    # Continental AG
    "051324": _profile("Continental", "DE", ROOT_TEMPLATE),
    "051342": _profile("Continental", "US", ROOT_TEMPLATE),
    "4019238": _profile("Continental", "DE", ROOT_TEMPLATE),
    # Pirelli
    "8019227": _profile("Pirelli", "IT", ROOT_TEMPLATE),
    # Goodyear
    "697662": _profile("Goodyear", "US", TIRE_TEMPLATE),
    "019502": _profile("Goodyear", "US", TIRE_TEMPLATE),
    # Bridgestone
    "019343": _profile("Bridgestone", "JP", TIRE_TEMPLATE),
    "4902027": _profile("Bridgestone", "JP", TIRE_TEMPLATE),
    # Hankook / Kumho (prefijo coreano 880)
    "8801954": _profile("Hankook", "KR", ROOT_TEMPLATE),
    "8801956": _profile("Kumho", "KR", ROOT_TEMPLATE),
    # Yokohama
    "4907587": _profile("Yokohama", "JP", TIRE_TEMPLATE),
    # Sumitomo / Falken / Dunlop
    "4981910": _profile("Sumitomo (Falken/Dunlop)", "JP", TIRE_TEMPLATE),
    # Toyo Tires
    "4571271": _profile("Toyo Tires", "JP", TIRE_TEMPLATE),
    # Nexen
    "8807622": _profile("Nexen", "KR", ROOT_TEMPLATE),
    # Giti
    "6924064": _profile("Giti", "SG", ROOT_TEMPLATE),
    # Prometeon (ex-Pirelli Industrial)
    "8019205": _profile("Prometeon", "IT", ROOT_TEMPLATE),
}

DEFAULT_PROFILE = ManufacturerProfile(
    name="Unknown",
    url_templates=(ROOT_TEMPLATE, TIRE_TEMPLATE, TYRE_TEMPLATE),
)


def get_manufacturer_profile(company_prefix: str) -> ManufacturerProfile:
    profile = MANUFACTURERS.get(company_prefix)
    if profile is not None:
        return profile
    return DEFAULT_PROFILE.model_copy(update={"name": f"Unknown ({company_prefix})"})


def _normalize_base(base_url: str) -> str:
    return base_url[:-1] if base_url.endswith("/") else base_url


def _render(template: str, base_url: str, sgtin: str) -> str:
    return template.replace("{base_url}", base_url).replace("{sgtin}", sgtin)


def _dedupe(urls: list[str]) -> list[str]:
    return list(dict.fromkeys(urls))


def build_candidate_urls(profile: ManufacturerProfile, base_url: str, sgtin: str) -> list[str]:
    """URLs GET a probar, en orden.

    - Perfil con una plantilla: la variante preferida (según `encode_sgtin`) y la otra.
    - Perfil genérico: codificada y sin codificar por cada plantilla.
    """

    base = _normalize_base(base_url)
    encoded = quote(sgtin, safe="")

    urls: list[str] = []
    if profile.is_generic:
        for template in profile.url_templates:
            urls.append(_render(template, base, encoded))
            urls.append(_render(template, base, sgtin))
    else:
        template = profile.url_templates[0]
        first, second = (encoded, sgtin) if profile.encode_sgtin else (sgtin, encoded)
        urls.append(_render(template, base, first))
        urls.append(_render(template, base, second))
    return _dedupe(urls)


def build_batch_urls(base_url: str) -> list[str]:
    """URLs POST candidatas para el endpoint multi-SGTIN.

    `/tire` -> `/tires`, `/tire` eliminado, `base + "s"` y la base tal cual.
    """

    base = _normalize_base(base_url)
    return _dedupe(
        [
            re.sub(r"/tire/?$", "/tires", base),
            re.sub(r"/tire/?$", "", base),
            base + "s",
            base,
        ]
    )

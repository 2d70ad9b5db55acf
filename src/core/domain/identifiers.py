"""SGTIN -> GTIN-13 -> FQDN ONS.

Funciones puras (sin I/O). El flujo completo:

    urn:epc:id:sgtin:086699.0988229.72916502389
    -> GTIN-13 0866999882290
    -> 0.9.2.2.8.8.9.9.9.6.6.8.0.<sufijo ONS>
"""

from __future__ import annotations

import re

from core.domain.errors import MalformedIdentifier
from core.domain.models import ParsedIdentifier

SGTIN_PREFIX = "urn:epc:id:sgtin:"

_SGTIN_RE = re.compile(r"urn:epc:id:sgtin:(\d+)\.(\d+)\.(\d+)", re.ASCII)

# indicador + company prefix + item ref, antes del dígito de control
_GTIN14_BASE_LENGTH = 13


def calculate_check_digit(digits: str) -> int:
    """Dígito de control GS1 (mod 10).

    Peso 1 si `(len - i)` es par, 3 si es impar: el dígito de datos más a la
    derecha pesa 3 (la posición del dígito de control pesaría 1).
    El llamador garantiza que `digits` solo contiene dígitos.
    """

    total = 0
    length = len(digits)
    for index, char in enumerate(digits):
        weight = 1 if (length - index) % 2 == 0 else 3
        total += int(char) * weight
    return (10 - (total % 10)) % 10


def parse_sgtin(identifier: object) -> ParsedIdentifier:
    if not isinstance(identifier, str):
        raise MalformedIdentifier(identifier, "identifier must be a string")
    if not identifier:
        raise MalformedIdentifier(identifier, "empty identifier")

    match = _SGTIN_RE.fullmatch(identifier)
    if match is None:
        raise MalformedIdentifier(
            identifier,
            f"expected {SGTIN_PREFIX}<companyPrefix>.<indicatorItemRef>.<serial>",
        )

    company_prefix, indicator_item_ref, serial_number = match.groups()
    return ParsedIdentifier(
        company_prefix=company_prefix,
        indicator_item_ref=indicator_item_ref,
        serial_number=serial_number,
        raw=identifier,
    )


def sgtin_to_gtin13(parsed: ParsedIdentifier) -> str:
    """Deriva el GTIN-13 (GTIN-14 sin el dígito indicador inicial).

    Raises:
        MalformedIdentifier: si indicador + prefix + item ref no suman 13 dígitos.
    """

    indicator = parsed.indicator_item_ref[0]
    item_ref = parsed.indicator_item_ref[1:]
    base = indicator + parsed.company_prefix + item_ref
    if len(base) != _GTIN14_BASE_LENGTH:
        raise MalformedIdentifier(
            parsed.raw,
            f"company prefix + indicator/item reference must total {_GTIN14_BASE_LENGTH} digits, got {len(base)}",
        )

    gtin14 = base + str(calculate_check_digit(base))
    return gtin14[1:]


def gtin_to_fqdn(gtin13: str, suffix: str) -> str:
    reversed_digits = ".".join(reversed(gtin13))
    return f"{reversed_digits}.{suffix}"

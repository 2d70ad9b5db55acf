"""Carga de ficheros batch (un SGTIN por línea).

Formato:
- Líneas vacías y comentarios (`#`) se ignoran.
- Solo se aceptan líneas con prefijo `urn:epc:id:sgtin:`; el resto se descarta
  (p.ej. cabeceras exportadas por lectores RFID).
"""

from __future__ import annotations

from pathlib import Path

from core.domain.identifiers import SGTIN_PREFIX


def parse_identifier_lines(text: str) -> list[str]:
    identifiers: list[str] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith(SGTIN_PREFIX):
            identifiers.append(line)
    return identifiers


def load_identifiers(path: Path) -> list[str]:
    return parse_identifier_lines(path.read_text(encoding="utf-8"))

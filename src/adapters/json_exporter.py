"""Exportación JSON de resultados.

Por qué JSON:
- Interoperabilidad con otras herramientas y pipelines (ERP, trazabilidad).
- Permite persistir el resultado de un batch sin depender del render de consola.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from core.domain.models import TireResult


def dump_results(results: Iterable[TireResult]) -> str:
    payload = [result.model_dump(mode="json") for result in results]
    return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n"


def export_results_json(*, results: Iterable[TireResult], output_path: Path) -> Path:
    """Exporta resultados a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dump_results(results), encoding="utf-8")
    return output_path

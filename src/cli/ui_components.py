"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en `tire`, `resolve` y `batch`.
"""

from __future__ import annotations

from typing import Any, Iterable

from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.errors import GdsoError, RetryExhausted
from core.domain.models import EndpointResolution, TireResult


def print_banner(console: Console, environment: str) -> None:
    """Imprime el banner de bienvenida.

    Por qué aquí:
    - Evita dependencias circulares (main <-> doctor).
    - Permite desactivar banner en modos no interactivos (JSON/pipelines).
    """

    title = Text("GDSO TIS", style="bold cyan")
    subtitle = Text(f"SGTIN • ONS • Tire Information Service: {environment.upper()}", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_resolution_panel(resolution: EndpointResolution) -> Panel:
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", no_wrap=True)
    table.add_column(style="white")
    if resolution.parsed is not None:
        table.add_row("SGTIN", resolution.parsed.raw)
        table.add_row("Company prefix", resolution.parsed.company_prefix)
    table.add_row("Manufacturer", resolution.manufacturer.name)
    table.add_row("GTIN-13", resolution.gtin13)
    table.add_row("FQDN", resolution.fqdn)
    table.add_row("API URL", resolution.api_url)

    services = Table(title="NAPTR services")
    services.add_column("Order", style="dim", justify="right")
    services.add_column("Pref", style="dim", justify="right")
    services.add_column("Service", style="cyan")
    services.add_column("URL", style="magenta")
    for service in resolution.services:
        services.add_row(
            str(service.order if service.order is not None else ""),
            str(service.preference if service.preference is not None else ""),
            service.service,
            service.url,
        )

    return Panel(Group(table, services), title="ONS resolution", border_style="cyan")


def _section(title: str, rows: list[tuple[str, Any]]) -> Table | None:
    visible = [(label, value) for label, value in rows if value not in (None, "", [], {})]
    if not visible:
        return None
    table = Table(title=title, show_header=False, title_justify="left")
    table.add_column(style="cyan", no_wrap=True)
    table.add_column(style="white")
    for label, value in visible:
        if isinstance(value, bool):
            value = "Yes" if value else "No"
        table.add_row(label, str(value))
    return table


def _measure(value: Any, default_uom: str) -> str | None:
    if not isinstance(value, dict) or value.get("value") in (None, ""):
        return None
    return f"{value['value']} {value.get('uom') or default_uom}"


def build_tire_panel(result: TireResult) -> Panel:
    """Panel con los datos del pneumático (o aviso si no hay datos)."""

    header = _section(
        "Tire",
        [
            ("UII", result.sgtin),
            ("Manufacturer", result.manufacturer),
            ("GTIN-13", result.gtin13),
            ("API URL", result.api_url),
        ],
    )
    parts: list[Any] = [header] if header is not None else []

    data = result.data
    if not isinstance(data, dict):
        if data is None:
            parts.append(Text("Data not available: the SGTIN may not be registered yet.", style="yellow"))
        else:
            parts.append(Text(str(data)))
        return Panel(Group(*parts), title="Tire information", border_style="yellow")

    product = data.get("product") if isinstance(data.get("product"), dict) else {}
    item_ids = product.get("itemIDS") if isinstance(product.get("itemIDS"), dict) else {}
    dimensions = product.get("dimensions") if isinstance(product.get("dimensions"), dict) else {}
    specs = product.get("specifications") if isinstance(product.get("specifications"), dict) else {}

    sections = [
        _section(
            "Product",
            [
                ("Brand", product.get("brandName")),
                ("Commercial name", product.get("commercialName")),
                ("Description", product.get("commercialNameLongDescription")),
                ("Product type", product.get("productType")),
                ("Class", product.get("labelTireClassAssociated")),
                ("EAN", item_ids.get("eanCode")),
                ("UPC", item_ids.get("upcCode")),
            ],
        ),
        _section(
            "Dimensions",
            [
                ("Size", dimensions.get("geometricalTyreSize")),
                ("Section width", _measure(dimensions.get("sectionWidth"), "mm")),
                ("Aspect ratio", dimensions.get("aspectRatio")),
                ("Rim diameter", _measure(dimensions.get("rimCode"), "in")),
            ],
        ),
        _section(
            "Specifications",
            [
                ("Load index", specs.get("loadIndex")),
                ("Speed symbol", specs.get("speedSymbol")),
                ("Structure", {"R": "Radial"}.get(specs.get("structure"), specs.get("structure"))),
                ("Extra load", specs.get("extraLoadOrReinforced")),
                ("Run flat", specs.get("runFlat")),
                ("Sealant", specs.get("sealant")),
                ("Directional", specs.get("directional")),
            ],
        ),
        _section(
            "OEM",
            [
                ("Supplier ID", product.get("supplierId")),
                ("Development ID", data.get("developmentIdentifier")),
                ("Customer part number", data.get("customerPartNumber")),
            ],
        ),
    ]
    parts.extend(section for section in sections if section is not None)
    if len(parts) == 1:
        parts.append(Text(f"{len(data)} field(s) received; use --json to see the raw payload.", style="dim"))
    return Panel(Group(*parts), title="Tire information", border_style="green")


def build_batch_table(results: Iterable[TireResult]) -> Table:
    table = Table(title="Batch results")
    table.add_column("UII", style="white")
    table.add_column("Manufacturer", style="cyan", no_wrap=True)
    table.add_column("GTIN-13", style="dim")
    table.add_column("Status", style="white")
    for result in results:
        if result.error is not None:
            status = Text(str(result.error.get("code", "ERROR")), style="red")
        elif result.data is not None:
            status = Text("OK", style="green")
        else:
            status = Text("NO DATA", style="yellow")
        table.add_row(result.sgtin, result.manufacturer, result.gtin13 or "", status)
    return table


def build_batch_summary(results: list[TireResult]) -> Panel:
    complete = sum(1 for r in results if r.error is None and r.data is not None)
    partial = sum(1 for r in results if r.error is None and r.data is None)
    failed = sum(1 for r in results if r.error is not None)
    body = Text()
    body.append(f"Complete: {complete}\n", style="green")
    body.append(f"No data: {partial}\n", style="yellow")
    body.append(f"Failed: {failed}", style="red")
    return Panel(body, title="Batch summary", border_style="cyan")


def build_error_panel(error: GdsoError) -> Panel:
    body = Text()
    body.append(f"{error.message}\n", style="bold")
    body.append(f"code: {error.code.value}\n", style="dim")
    if isinstance(error, RetryExhausted) and error.last_error is not None:
        body.append(f"last error: {error.last_error}\n", style="dim")
    return Panel(body, title=type(error).__name__, border_style="red")

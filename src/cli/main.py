"""CLI principal (Typer).

Comandos:
- `tire <SGTIN>`: consulta completa (ONS + Auth + API fabricante).
- `resolve <SGTIN>`: solo resolución ONS.
- `batch <FILE>`: varios SGTIN agrupados por fabricante.
- `doctor ...`: diagnóstico de configuración.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from adapters.batch_loader import load_identifiers
from adapters.json_exporter import dump_results, export_results_json
from cli import doctor
from cli.ui_components import (
    build_batch_summary,
    build_batch_table,
    build_error_panel,
    build_resolution_panel,
    build_tire_panel,
    print_banner,
)
from core.config import AppSettings
from core.domain.errors import GdsoError, MalformedIdentifier
from core.domain.identifiers import parse_sgtin, sgtin_to_gtin13
from core.domain.models import TireResult
from core.services.tire_lookup import TireLookupService

app = typer.Typer(no_args_is_help=True, help="GDSO Tire Information Service client.")
app.add_typer(doctor.app, name="doctor")

_console = Console()

EnvOption = typer.Option(None, "--env", "-e", help="GDSO environment: testing | production.")
JsonOption = typer.Option(False, "--json", help="Print raw JSON instead of tables.")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Debug logging.")


def configure_logging(level: str) -> None:
    """Un único handler Rich en el root logger (stderr)."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=False)
    root.addHandler(handler)
    root.setLevel(level.upper())
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_settings(env: Optional[str], verbose: bool) -> AppSettings:
    overrides: dict[str, object] = {}
    if env:
        if env not in ("testing", "production"):
            raise typer.BadParameter("env must be 'testing' or 'production'")
        overrides["environment"] = env
    settings = AppSettings(**overrides)
    configure_logging("DEBUG" if verbose else settings.log_level)
    return settings


def _fail(error: GdsoError, as_json: bool) -> NoReturn:
    if as_json:
        _console.print_json(data=error.to_dict())
    else:
        _console.print(build_error_panel(error))
    raise typer.Exit(code=1)


@app.command()
def tire(
    sgtin: str = typer.Argument(..., help="urn:epc:id:sgtin:<prefix>.<item>.<serial>"),
    env: Optional[str] = EnvOption,
    as_json: bool = JsonOption,
    verbose: bool = VerboseOption,
) -> None:
    """Look up tire data for one SGTIN."""

    settings = _load_settings(env, verbose)

    async def _run() -> TireResult:
        async with TireLookupService(settings) as service:
            return await service.get_tire_info(sgtin)

    if not as_json:
        print_banner(_console, settings.environment)
    try:
        result = asyncio.run(_run())
    except GdsoError as exc:
        _fail(exc, as_json)

    if as_json:
        _console.print_json(data=result.model_dump(mode="json"))
    else:
        _console.print(build_tire_panel(result))


@app.command()
def resolve(
    sgtin: str = typer.Argument(..., help="urn:epc:id:sgtin:<prefix>.<item>.<serial>"),
    env: Optional[str] = EnvOption,
    as_json: bool = JsonOption,
    verbose: bool = VerboseOption,
) -> None:
    """Resolve the manufacturer API endpoint (ONS/NAPTR) only."""

    settings = _load_settings(env, verbose)

    async def _run():
        async with TireLookupService(settings) as service:
            return await service.resolve(sgtin)

    try:
        resolution = asyncio.run(_run())
    except GdsoError as exc:
        _fail(exc, as_json)

    if as_json:
        _console.print_json(data=resolution.model_dump(mode="json"))
    else:
        _console.print(build_resolution_panel(resolution))


def _split_valid(identifiers: list[str]) -> tuple[list[str], list[TireResult]]:
    valid: list[str] = []
    rejected: list[TireResult] = []
    for identifier in identifiers:
        try:
            sgtin_to_gtin13(parse_sgtin(identifier))
        except MalformedIdentifier as exc:
            rejected.append(TireResult(sgtin=identifier, manufacturer="Unknown", error=exc.to_dict()))
            continue
        valid.append(identifier)
    return valid, rejected


@app.command()
def batch(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="One SGTIN per line."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write results as JSON."),
    env: Optional[str] = EnvOption,
    as_json: bool = JsonOption,
    verbose: bool = VerboseOption,
) -> None:
    """Look up many SGTINs, grouped by manufacturer."""

    settings = _load_settings(env, verbose)
    identifiers = load_identifiers(file)
    if not identifiers:
        _console.print("[yellow]No SGTIN found in file.[/yellow]")
        raise typer.Exit(code=1)

    valid, rejected = _split_valid(identifiers)

    async def _run() -> list[TireResult]:
        if not valid:
            return []
        async with TireLookupService(settings) as service:
            return await service.get_tire_info_batch(valid)

    if not as_json:
        print_banner(_console, settings.environment)
        _console.print(f"Processing {len(identifiers)} UII(s)...")
    try:
        results = asyncio.run(_run()) + rejected
    except GdsoError as exc:
        _fail(exc, as_json)

    if output is not None:
        path = export_results_json(results=results, output_path=output)
        if not as_json:
            _console.print(f"[green]Results saved to:[/green] {path}")

    if as_json:
        _console.print_json(dump_results(results))
    else:
        _console.print(build_batch_table(results))
        _console.print(build_batch_summary(results))


def run() -> None:
    app()


if __name__ == "__main__":
    run()

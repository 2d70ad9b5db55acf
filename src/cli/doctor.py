"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.auth_session import AuthSession
from adapters.http_client import build_async_client
from core.config import AppSettings, write_user_env_vars
from core.domain.errors import GdsoError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()

# Un FQDN cualquiera del sufijo ONS: solo comprobamos que el resolver responde.
_PROBE_GTIN_FQDN = "0.9.2.2.8.8.9.9.9.6.6.8.0"


async def _check_dns(settings: AppSettings) -> tuple[bool, str]:
    fqdn = f"{_PROBE_GTIN_FQDN}.{settings.environment_config().ons_suffix}"
    try:
        async with build_async_client(settings) as client:
            response = await client.get(
                settings.dns_resolver_url,
                params={"name": fqdn, "type": "NAPTR"},
                headers={"Accept": "application/dns-json"},
                timeout=settings.dns_timeout_seconds,
            )
        return response.is_success, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc) or type(exc).__name__


async def _check_auth(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            session = AuthSession(settings=settings, client=client)
            await session.get_token()
            expires_at = session.session.expires_at if session.session else None
        return True, f"token OK (expires_at={expires_at})"
    except GdsoError as exc:
        return False, exc.message


@app.command()
def run(
    env: str = typer.Option("testing", "--env", "-e", help="GDSO environment: testing | production."),
    auth: bool = typer.Option(False, "--auth", help="Also request a token from the auth endpoint."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings(environment=env)
    env_config = settings.environment_config()

    table = Table(title="GDSO TIS Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("Environment", "OK", env_config.name)
    table.add_row("Token URL", "OK", env_config.token_url)
    table.add_row("ONS suffix", "OK", env_config.ons_suffix)
    username, password = settings.credentials()
    if username and password:
        table.add_row("Credentials", "OK", f"user={username}")
    else:
        table.add_row("Credentials", "MISSING", "Run `doctor setup` or set GDSO_USERNAME/GDSO_PASSWORD")

    # Connectivity (best-effort)
    ok_dns, detail_dns = asyncio.run(_check_dns(settings))
    table.add_row("DNS resolver", "OK" if ok_dns else "FAIL", f"{settings.dns_resolver_url} -> {detail_dns}")

    if auth:
        ok_auth, detail_auth = asyncio.run(_check_auth(settings))
        table.add_row("Authentication", "OK" if ok_auth else "FAIL", detail_auth)

    _console.print(table)


@app.command(name="setup")
def setup() -> None:
    """Interactive credential setup (stores config in the user config .env)."""

    environment = typer.prompt(
        "Environment",
        default="testing",
        show_default=True,
    ).strip().lower()
    if environment not in ("testing", "production"):
        raise typer.BadParameter("environment must be 'testing' or 'production'")

    username = typer.prompt("GDSO username").strip()
    password = typer.prompt("GDSO password", hide_input=True, confirmation_prompt=False).strip()
    if not username or not password:
        raise typer.BadParameter("username and password are required")

    prefix = "GDSO_PROD_" if environment == "production" else "GDSO_"
    env_path = write_user_env_vars(
        {
            "GDSO_ENVIRONMENT": environment,
            f"{prefix}USERNAME": username,
            f"{prefix}PASSWORD": password,
        }
    )

    _console.print(f"[green]Saved GDSO config to:[/green] {env_path}")

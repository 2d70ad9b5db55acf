"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (DNS/Auth/API fabricante) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.resilience.retry import RetryPolicy

Environment = Literal["testing", "production"]


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "gdso-tis"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "gdso-tis"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "gdso-tis"
    return Path.home() / ".config" / "gdso-tis"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str]) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# GDSO TIS user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class EnvironmentConfig(BaseModel):
    """Endpoints fijos de un entorno GDSO (testing / production)."""

    name: str
    token_url: str
    ons_suffix: str


ENVIRONMENTS: dict[str, EnvironmentConfig] = {
    "testing": EnvironmentConfig(
        name="Testing",
        token_url="https://authentication-api.testing.gdso.org/getIdToken",
        ons_suffix="gtin.gs1.id.testing.gdso.org",
    ),
    "production": EnvironmentConfig(
        name="Production",
        token_url="https://authentication-api.gdso.org/getIdToken",
        ons_suffix="gtin.gs1.id.gdso.org",
    ),
}


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="GDSO_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    environment: Environment = Field(
        default="testing",
        description="Entorno GDSO (testing/production).",
    )

    username: str | None = Field(default=None, description="Usuario API System-to-System (testing).")
    password: str | None = Field(default=None, description="Password (testing).")
    prod_username: str | None = Field(default=None, description="Usuario (production).")
    prod_password: str | None = Field(default=None, description="Password (production).")

    dns_resolver_url: str = Field(
        default="https://dns.google/resolve",
        min_length=8,
        description="Endpoint DNS-over-HTTPS (formato JSON).",
    )
    user_agent: str = Field(
        default="gdso-tis/0.1",
        min_length=1,
        description="User-Agent para todas las peticiones.",
    )

    dns_timeout_seconds: float = Field(default=5.0, gt=0)
    auth_timeout_seconds: float = Field(default=10.0, gt=0)
    api_timeout_seconds: float = Field(default=30.0, gt=0)

    retry_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Intentos máximos ante fallos transitorios (DNS/Auth).",
    )
    retry_delay_seconds: float = Field(default=1.0, ge=0)
    retry_backoff_multiplier: float = Field(default=2.0, ge=1.0)

    cache_max_size: int = Field(default=100, ge=1, le=100_000)
    cache_ttl_seconds: float = Field(default=3600.0, gt=0)

    log_level: str = Field(default="INFO", description="Nivel de logging (DEBUG/INFO/WARNING...).")

    def environment_config(self) -> EnvironmentConfig:
        return ENVIRONMENTS.get(self.environment, ENVIRONMENTS["testing"])

    def credentials(self) -> tuple[str | None, str | None]:
        if self.environment == "production":
            return self.prod_username, self.prod_password
        return self.username, self.password

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            initial_delay=self.retry_delay_seconds,
            backoff_multiplier=self.retry_backoff_multiplier,
        )

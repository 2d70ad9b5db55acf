"""Errores del dominio GDSO.

Por qué una jerarquía propia:
- Cada tipo de fallo lleva un `ErrorCode` estable (enum cerrado) y un payload
  estructurado, en vez de mensajes libres que haya que parsear.
- La política de reintentos decide con `code` y `details["http_status"]`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Códigos de error machine-readable."""

    SGTIN_PARSE_ERROR = "SGTIN_PARSE_ERROR"
    DNS_RESOLUTION_ERROR = "DNS_RESOLUTION_ERROR"
    NAPTR_NOT_FOUND = "NAPTR_NOT_FOUND"
    CREDENTIALS_MISSING = "CREDENTIALS_MISSING"
    AUTH_ERROR = "AUTH_ERROR"
    MANUFACTURER_API_ERROR = "MANUFACTURER_API_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"


class GdsoError(Exception):
    """Error base: mensaje + código + detalles serializables."""

    code: ErrorCode

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = dict(details or {})
        self.timestamp = datetime.now(timezone.utc)

    @property
    def http_status(self) -> int | None:
        status = self.details.get("http_status")
        return status if isinstance(status, int) else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": type(self).__name__,
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class MalformedIdentifier(GdsoError):
    code = ErrorCode.SGTIN_PARSE_ERROR

    def __init__(self, identifier: object, reason: str = "invalid format") -> None:
        super().__init__(
            f"Invalid SGTIN: {identifier!r} - {reason}",
            {"sgtin": identifier if isinstance(identifier, str) else repr(identifier), "reason": reason},
        )


class DnsResolutionFailed(GdsoError):
    """Fallo al contactar con el resolver DNS-over-HTTPS.

    `transient=True` marca fallos de red sin status HTTP (conexión, DNS del host).
    """

    code = ErrorCode.DNS_RESOLUTION_ERROR

    def __init__(
        self,
        fqdn: str,
        reason: str,
        http_status: int | None = None,
        *,
        transient: bool = False,
    ) -> None:
        super().__init__(
            f"DNS resolution failed for {fqdn}: {reason}",
            {"fqdn": fqdn, "reason": reason, "http_status": http_status, "transient": transient},
        )


class ServiceNotFound(GdsoError):
    """DNS respondió, pero sin un servicio NAPTR utilizable."""

    code = ErrorCode.NAPTR_NOT_FOUND

    def __init__(
        self,
        fqdn: str,
        gtin13: str | None = None,
        reason: str = "no NAPTR record found - the manufacturer may not have published its GDSO API",
    ) -> None:
        super().__init__(
            f"No tire service for {fqdn}: {reason}",
            {"fqdn": fqdn, "gtin13": gtin13, "reason": reason},
        )


class AuthenticationFailed(GdsoError):
    code = ErrorCode.AUTH_ERROR

    def __init__(
        self,
        reason: str,
        http_status: int | None = None,
        environment: str | None = None,
        *,
        transient: bool = False,
    ) -> None:
        super().__init__(
            f"Authentication failed: {reason}",
            {
                "reason": reason,
                "http_status": http_status,
                "environment": environment,
                "transient": transient,
            },
        )


class CredentialsMissing(AuthenticationFailed):
    code = ErrorCode.CREDENTIALS_MISSING

    def __init__(self, environment: str) -> None:
        env_vars = (
            "GDSO_PROD_USERNAME/GDSO_PROD_PASSWORD"
            if environment == "production"
            else "GDSO_USERNAME/GDSO_PASSWORD"
        )
        super().__init__(
            f"missing credentials for {environment}; set {env_vars} in .env",
            environment=environment,
        )


class ManufacturerApiError(GdsoError):
    code = ErrorCode.MANUFACTURER_API_ERROR

    def __init__(
        self,
        manufacturer: str,
        reason: str,
        http_status: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(
            f"{manufacturer} API error: {reason}",
            {"manufacturer": manufacturer, "reason": reason, "http_status": http_status, "url": url},
        )


class RequestTimeout(GdsoError):
    code = ErrorCode.TIMEOUT_ERROR

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Timeout after {timeout_seconds}s for: {operation}",
            {"operation": operation, "timeout_seconds": timeout_seconds},
        )


class RetryExhausted(GdsoError):
    """Envuelve el último error tras agotar los intentos."""

    code = ErrorCode.RETRY_EXHAUSTED

    def __init__(self, operation: str, attempts: int, last_error: BaseException | None) -> None:
        super().__init__(
            f"Failed after {attempts} attempt(s): {operation}",
            {
                "operation": operation,
                "attempts": attempts,
                "last_error": str(last_error) if last_error is not None else None,
            },
        )
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error

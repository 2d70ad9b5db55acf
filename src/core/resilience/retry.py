"""Retry con backoff exponencial para operaciones asíncronas.

Por qué tenacity con una política propia:
- DNS y autenticación comparten la misma política (intentos, delay, multiplicador)
  y la misma clasificación de errores reintentables.
- `sleep` es inyectable, así los tests no esperan de verdad.
- Cualquier fallo final (agotado o no reintentable) sale como `RetryExhausted`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

import httpx
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt, wait_exponential

from core.domain.errors import (
    CredentialsMissing,
    GdsoError,
    MalformedIdentifier,
    RequestTimeout,
    RetryExhausted,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def default_should_retry(error: BaseException) -> bool:
    """Clasificador por defecto.

    - Validación/parsing y credenciales ausentes: nunca.
    - Timeouts y fallos de red: sí.
    - HTTP 5xx y 429: sí.
    - Cualquier otra cosa: no.
    """

    if isinstance(error, (MalformedIdentifier, CredentialsMissing)):
        return False
    if isinstance(error, RequestTimeout):
        return True
    if isinstance(error, (httpx.TimeoutException, httpx.NetworkError)):
        return True

    status: int | None = None
    if isinstance(error, GdsoError):
        if error.details.get("transient"):
            return True
        status = error.http_status
    elif isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code

    if status is not None and (status >= 500 or status == 429):
        return True
    return False


def retry_everything(error: BaseException) -> bool:
    return True


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff_multiplier: float = 2.0
    is_retryable: Callable[[BaseException], bool] = default_should_retry
    on_retry: Callable[[int, float], None] | None = field(default=None, repr=False)


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    operation_name: str = "operation",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Ejecuta `operation` hasta que tenga éxito o se agote la política.

    Raises:
        RetryExhausted: con el último error, tanto si se agotaron los intentos
            como si el error no era reintentable.
    """

    policy = policy or RetryPolicy()
    attempts = 0

    async def _attempt() -> T:
        nonlocal attempts
        attempts += 1
        return await operation()

    def _before_sleep(state: RetryCallState) -> None:
        delay = float(state.next_action.sleep) if state.next_action is not None else 0.0
        error = state.outcome.exception() if state.outcome is not None else None
        logger.info(
            "%s failed (attempt %d/%d), retrying in %.2fs: %s",
            operation_name,
            state.attempt_number,
            policy.max_attempts,
            delay,
            error,
        )
        if policy.on_retry is not None:
            policy.on_retry(state.attempt_number, delay)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(multiplier=policy.initial_delay, exp_base=policy.backoff_multiplier, min=0),
        retry=retry_if_exception(policy.is_retryable),
        before_sleep=_before_sleep,
        sleep=sleep,
        reraise=True,
    )
    try:
        return await retrying(_attempt)
    except Exception as exc:
        logger.debug("%s failed on attempt %d, giving up: %s", operation_name, attempts, exc)
        raise RetryExhausted(operation_name, attempts, exc) from exc

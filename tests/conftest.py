"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Callable

import httpx
import pytest

from core.config import AppSettings

DNS_URL = "https://dns.test/resolve"
MICHELIN_SGTIN = "urn:epc:id:sgtin:086699.0762575.63647563790"
MICHELIN_API = "https://api.michelin.test/gdso/v1"


class SleepRecorder:
    """Replaces asyncio.sleep: records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def naptr_record(url: str, service: str = "GetTireBySgtin", *, quoted: bool = True) -> dict[str, Any]:
    if quoted:
        data = f'10 100 "u" "{service}" "!^.*$!{url}!" .'
    else:
        data = f"10 100 u {service} !^.*$!{url}! ."
    return {"name": "example.", "type": 35, "TTL": 300, "data": data}


def dns_envelope(*records: dict[str, Any], status: int = 0) -> dict[str, Any]:
    payload: dict[str, Any] = {"Status": status}
    if records:
        payload["Answer"] = list(records)
    return payload


def make_jwt(payload: dict[str, Any]) -> str:
    def segment(obj: dict[str, Any]) -> str:
        return base64.urlsafe_b64encode(json.dumps(obj).encode()).rstrip(b"=").decode()

    return f"{segment({'alg': 'RS256', 'typ': 'JWT'})}.{segment(payload)}.c2lnbmF0dXJl"


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def settings() -> AppSettings:
    """Settings isolated from any local .env file."""
    return AppSettings(
        _env_file=None,
        environment="testing",
        username="fleet-user",
        password="s3cret",
        dns_resolver_url=DNS_URL,
    )


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

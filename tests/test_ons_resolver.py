"""
Tests for ONS endpoint resolution over a mocked DNS-over-HTTPS resolver.
"""

import httpx
import pytest

from adapters.ons_resolver import EndpointResolver
from core.domain.errors import DnsResolutionFailed, MalformedIdentifier, RetryExhausted, ServiceNotFound
from core.resilience.cache import TTLCache
from core.resilience.retry import RetryPolicy

from conftest import DNS_URL, MICHELIN_API, MICHELIN_SGTIN, dns_envelope, mock_client, naptr_record


class DnsStub:
    """Mock DoH endpoint; replies with queued responses (last one repeats)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses[0] if len(self.responses) == 1 else self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def ok(*records, status=0):
    return httpx.Response(200, json=dns_envelope(*records, status=status))


def make_resolver(settings, stub, sleep_recorder):
    return EndpointResolver(settings=settings, client=mock_client(stub), sleep=sleep_recorder)


class TestResolve:
    @pytest.mark.asyncio
    async def test_end_to_end_resolution(self, settings, sleep_recorder):
        stub = DnsStub(ok(naptr_record("https://other.test", service="GetTireList"), naptr_record(MICHELIN_API)))
        resolver = make_resolver(settings, stub, sleep_recorder)

        resolution = await resolver.resolve(MICHELIN_SGTIN)

        assert resolution.api_url == MICHELIN_API
        assert len(resolution.gtin13) == 13
        assert resolution.gtin13 == "0866997625752"
        assert resolution.fqdn == "2.5.7.5.2.6.7.9.9.6.6.8.0.gtin.gs1.id.testing.gdso.org"
        assert resolution.manufacturer.name == "Michelin"
        assert len(resolution.services) == 2
        assert resolution.parsed is not None
        assert resolution.parsed.serial_number == "63647563790"

    @pytest.mark.asyncio
    async def test_query_shape(self, settings, sleep_recorder):
        stub = DnsStub(ok(naptr_record(MICHELIN_API)))
        resolver = make_resolver(settings, stub, sleep_recorder)

        await resolver.resolve(MICHELIN_SGTIN)

        request = stub.requests[0]
        assert str(request.url).startswith(DNS_URL)
        assert request.url.params["type"] == "NAPTR"
        assert request.url.params["name"].endswith(".gtin.gs1.id.testing.gdso.org")
        assert request.headers["Accept"] == "application/dns-json"

    @pytest.mark.asyncio
    async def test_second_resolution_uses_cache(self, settings, sleep_recorder):
        stub = DnsStub(ok(naptr_record(MICHELIN_API)))
        resolver = make_resolver(settings, stub, sleep_recorder)

        first = await resolver.resolve(MICHELIN_SGTIN)
        other_serial = MICHELIN_SGTIN.rsplit(".", 1)[0] + ".1"
        second = await resolver.resolve(other_serial)

        assert len(stub.requests) == 1
        assert second.api_url == first.api_url
        assert second.parsed.raw == other_serial
        assert resolver.cache.get(first.gtin13).parsed is None

    @pytest.mark.asyncio
    async def test_malformed_identifier_makes_no_request(self, settings, sleep_recorder):
        stub = DnsStub(ok(naptr_record(MICHELIN_API)))
        resolver = make_resolver(settings, stub, sleep_recorder)

        with pytest.raises(MalformedIdentifier):
            await resolver.resolve("urn:epc:id:sgtin:086699.0762575")
        assert stub.requests == []

    @pytest.mark.asyncio
    async def test_non_zero_status_is_service_not_found(self, settings, sleep_recorder):
        stub = DnsStub(ok(status=3))
        resolver = make_resolver(settings, stub, sleep_recorder)

        with pytest.raises(ServiceNotFound):
            await resolver.resolve(MICHELIN_SGTIN)
        assert len(stub.requests) == 1

    @pytest.mark.asyncio
    async def test_no_answers_is_service_not_found(self, settings, sleep_recorder):
        stub = DnsStub(ok())
        resolver = make_resolver(settings, stub, sleep_recorder)

        with pytest.raises(ServiceNotFound):
            await resolver.resolve(MICHELIN_SGTIN)

    @pytest.mark.asyncio
    async def test_answers_without_tire_service(self, settings, sleep_recorder):
        stub = DnsStub(ok(naptr_record("https://list.test", service="GetTireList")))
        resolver = make_resolver(settings, stub, sleep_recorder)

        with pytest.raises(ServiceNotFound):
            await resolver.resolve(MICHELIN_SGTIN)
        assert resolver.cache.size == 0

    @pytest.mark.asyncio
    async def test_transient_failures_are_retried(self, settings, sleep_recorder):
        stub = DnsStub(
            httpx.Response(503),
            httpx.ConnectError("connection reset"),
            ok(naptr_record(MICHELIN_API)),
        )
        resolver = make_resolver(settings, stub, sleep_recorder)

        resolution = await resolver.resolve(MICHELIN_SGTIN)

        assert resolution.api_url == MICHELIN_API
        assert len(stub.requests) == 3
        assert sleep_recorder.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_persistent_server_errors_exhaust_retries(self, settings, sleep_recorder):
        stub = DnsStub(httpx.Response(500))
        resolver = make_resolver(settings, stub, sleep_recorder)

        with pytest.raises(RetryExhausted) as exc_info:
            await resolver.resolve(MICHELIN_SGTIN)

        assert len(stub.requests) == 3
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.last_error, DnsResolutionFailed)
        assert exc_info.value.last_error.http_status == 500

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, settings, sleep_recorder):
        stub = DnsStub(httpx.Response(400))
        resolver = make_resolver(settings, stub, sleep_recorder)

        with pytest.raises(RetryExhausted) as exc_info:
            await resolver.resolve(MICHELIN_SGTIN)

        assert len(stub.requests) == 1
        assert exc_info.value.attempts == 1

    @pytest.mark.asyncio
    async def test_environments_do_not_share_cache(self, settings, sleep_recorder):
        production = settings.model_copy(update={"environment": "production"})
        stub = DnsStub(ok(naptr_record(MICHELIN_API)))
        testing_resolver = make_resolver(settings, stub, sleep_recorder)
        production_resolver = make_resolver(production, stub, sleep_recorder)

        await testing_resolver.resolve(MICHELIN_SGTIN)
        resolution = await production_resolver.resolve(MICHELIN_SGTIN)

        assert len(stub.requests) == 2
        assert resolution.fqdn.endswith(".gtin.gs1.id.gdso.org")


class TestInjectedCollaborators:
    @pytest.mark.asyncio
    async def test_empty_injected_cache_is_used(self, settings, sleep_recorder):
        shared = TTLCache(max_size=10)
        stub = DnsStub(ok(naptr_record(MICHELIN_API)))
        resolver = EndpointResolver(settings=settings, client=mock_client(stub), cache=shared, sleep=sleep_recorder)

        assert resolver.cache is shared
        await resolver.resolve(MICHELIN_SGTIN)
        assert shared.size == 1

    @pytest.mark.asyncio
    async def test_injected_retry_policy_is_used(self, settings, sleep_recorder):
        stub = DnsStub(httpx.Response(503))
        resolver = EndpointResolver(
            settings=settings,
            client=mock_client(stub),
            retry_policy=RetryPolicy(max_attempts=1),
            sleep=sleep_recorder,
        )

        with pytest.raises(RetryExhausted) as exc_info:
            await resolver.resolve(MICHELIN_SGTIN)
        assert exc_info.value.attempts == 1
        assert len(stub.requests) == 1

"""Tests for the HTTPS sender and its fixed-interval retry."""

import gzip

import httpx
import pytest

from nrforwarder.errors import DeliveryError
from nrforwarder.sender import SPAN_HEADERS, HttpSender

ENDPOINT = "https://log-api.example.com/log/v1"


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestSend:
    @pytest.mark.asyncio
    async def test_posts_gzip_with_headers(self, context, make_settings):
        seen = {}

        def handler(request):
            seen["headers"] = request.headers
            seen["body"] = gzip.decompress(request.content)
            return httpx.Response(202, text='{"requestId": "r1"}')

        async with _client(handler) as client:
            sender = HttpSender(client, make_settings())
            body = await sender.send(gzip.compress(b"[]"), ENDPOINT, dict(SPAN_HEADERS), context)

        assert body == '{"requestId": "r1"}'
        assert seen["body"] == b"[]"
        assert seen["headers"]["content-type"] == "application/json"
        assert seen["headers"]["content-encoding"] == "gzip"
        assert seen["headers"]["x-license-key"] == "test-license-key"
        assert seen["headers"]["data-format"] == "newrelic"
        assert seen["headers"]["data-format-version"] == "1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [200, 400, 403, 500])
    async def test_only_202_is_success(self, context, make_settings, status):
        async with _client(lambda request: httpx.Response(status)) as client:
            sender = HttpSender(client, make_settings())
            with pytest.raises(DeliveryError) as excinfo:
                await sender.send(b"x", ENDPOINT, {}, context)
        assert excinfo.value.status_code == status

    @pytest.mark.asyncio
    async def test_transport_failure(self, context, make_settings):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        async with _client(handler) as client:
            sender = HttpSender(client, make_settings())
            with pytest.raises(DeliveryError) as excinfo:
                await sender.send(b"x", ENDPOINT, {}, context)
        assert excinfo.value.status_code is None


class TestSendWithRetry:
    @pytest.mark.asyncio
    async def test_exhausts_exactly_max_retries(self, context, make_settings):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        sleep = RecordingSleep()
        async with _client(handler) as client:
            sender = HttpSender(client, make_settings(max_retries=3, retry_interval_ms=2000), sleep=sleep)
            with pytest.raises(DeliveryError):
                await sender.send_with_retry(b"x", ENDPOINT, {}, context)

        assert len(calls) == 3
        assert sleep.delays == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_recovers_after_failures(self, context, make_settings):
        statuses = iter([500, 429, 202])
        sleep = RecordingSleep()
        async with _client(lambda request: httpx.Response(next(statuses))) as client:
            sender = HttpSender(client, make_settings(max_retries=3), sleep=sleep)
            await sender.send_with_retry(b"x", ENDPOINT, {}, context)
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_first_success_does_not_sleep(self, context, make_settings):
        sleep = RecordingSleep()
        async with _client(lambda request: httpx.Response(202)) as client:
            sender = HttpSender(client, make_settings(), sleep=sleep)
            await sender.send_with_retry(b"x", ENDPOINT, {}, context)
        assert sleep.delays == []

    def test_max_retries_has_floor_of_one(self, make_settings):
        sender = HttpSender(None, make_settings(max_retries=0))
        assert sender.max_retries == 1

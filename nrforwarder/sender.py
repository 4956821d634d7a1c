"""HTTPS sender — posts gzip payloads with a fixed-interval retry."""

import asyncio
import logging

import httpx

from nrforwarder.config import Settings
from nrforwarder.errors import DeliveryError

logger = logging.getLogger(__name__)

SUCCESS_STATUS = 202
SPAN_HEADERS = {"Data-Format": "newrelic", "Data-Format-Version": "1"}


class HttpSender:
    """Sends compressed chunks to the ingestion API.

    A delivery succeeds only on HTTP 202; any other status or a transport
    failure raises DeliveryError. ``sleep`` is injectable so the retry spacing
    can be observed without waiting.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings, sleep=asyncio.sleep):
        self._client = client
        self._license_key = settings.license_key
        self._max_retries = max(1, settings.max_retries)
        self._retry_interval = settings.retry_interval_ms / 1000
        self._sleep = sleep

    @property
    def max_retries(self) -> int:
        return self._max_retries

    async def send(self, data: bytes, endpoint: str, headers: dict, context) -> str:
        """Issue a single POST. Returns the response body on 202."""
        request_headers = {
            "Content-Type": "application/json",
            "Content-Encoding": "gzip",
            "X-License-Key": self._license_key,
            **headers,
        }
        try:
            response = await self._client.post(endpoint, content=data, headers=request_headers)
        except httpx.HTTPError as exc:
            raise DeliveryError(f"Transport failure posting to {endpoint}: {exc!r}") from exc

        context.log(f"Got response: {response.status_code}")
        if response.status_code != SUCCESS_STATUS:
            raise DeliveryError(
                f"Unexpected status {response.status_code} from {endpoint}",
                status_code=response.status_code,
            )
        return response.text

    async def send_with_retry(self, data: bytes, endpoint: str, headers: dict, context) -> str:
        """Call send() up to max_retries times in total, sleeping a fixed interval between attempts.

        The last DeliveryError propagates once the attempts are exhausted.
        """
        for attempt in range(1, self._max_retries + 1):
            try:
                return await self.send(data, endpoint, headers, context)
            except DeliveryError as exc:
                if attempt == self._max_retries:
                    raise
                context.warn(f"Send failed (attempt {attempt}/{self._max_retries}): {exc}")
                await self._sleep(self._retry_interval)
        raise DeliveryError("No delivery attempt was made")

"""Payload shipper — compresses a batch and halves it until every chunk fits the ceiling."""

import asyncio
import logging
from dataclasses import dataclass

from nrforwarder.attributes import build_payload
from nrforwarder.compression import compress_payload
from nrforwarder.config import Settings
from nrforwarder.errors import CompressionError, DeliveryError, OversizeError
from nrforwarder.sender import HttpSender

logger = logging.getLogger(__name__)

# Halving n records reaches singletons after log2(n) levels; this only trips
# on batches far beyond anything a trigger delivers.
MAX_SPLIT_DEPTH = 20


@dataclass(frozen=True)
class ShipResult:
    sent: int = 0
    dropped: int = 0
    chunks: int = 0
    splits: int = 0

    def __add__(self, other: "ShipResult") -> "ShipResult":
        return ShipResult(
            sent=self.sent + other.sent,
            dropped=self.dropped + other.dropped,
            chunks=self.chunks + other.chunks,
            splits=self.splits + other.splits,
        )


class PayloadShipper:
    """Ships one kind of item (logs or spans) to one endpoint.

    Each call compresses ``[{"common": ..., <kind>: items}]``. When the result
    exceeds ``max_payload_size_bytes`` the items are split at ``len // 2`` and
    both halves are shipped concurrently; a single oversized item is dropped.
    Failures never escape a chunk: they are reported through the context and
    counted in the returned ShipResult.
    """

    def __init__(self, settings: Settings, sender: HttpSender, common: dict):
        self._max_size = settings.max_payload_size_bytes
        self._sender = sender
        self._common = common

    async def ship(
        self,
        items: list,
        kind: str,
        endpoint: str,
        headers: dict,
        context,
        depth: int = 0,
    ) -> ShipResult:
        if not items:
            return ShipResult()

        payload = build_payload(self._common, kind, items)
        try:
            compressed = await asyncio.to_thread(compress_payload, payload)
        except CompressionError as exc:
            context.error(f"Error during payload compression: {exc}")
            return ShipResult(dropped=len(items))

        if len(compressed) > self._max_size:
            if len(items) == 1:
                context.error(str(OversizeError(len(compressed), self._max_size)))
                return ShipResult(dropped=1)
            if depth >= MAX_SPLIT_DEPTH:
                context.error(
                    f"Giving up on {len(items)} {kind} after {depth} splits; "
                    f"payload still {len(compressed)} bytes"
                )
                return ShipResult(dropped=len(items))

            mid = len(items) // 2
            logger.debug(
                "Payload of %d bytes exceeds %d; splitting %d %s at %d",
                len(compressed), self._max_size, len(items), kind, mid,
            )
            left, right = await asyncio.gather(
                self.ship(items[:mid], kind, endpoint, headers, context, depth + 1),
                self.ship(items[mid:], kind, endpoint, headers, context, depth + 1),
            )
            return left + right + ShipResult(splits=1)

        try:
            await self._sender.send_with_retry(compressed, endpoint, headers, context)
        except DeliveryError as exc:
            context.error(f"Max retries reached: failed to send {kind} payload to New Relic: {exc}")
            return ShipResult(dropped=len(items))

        context.log(f"{kind.capitalize()} payload successfully sent to New Relic.")
        return ShipResult(sent=len(items), chunks=1)

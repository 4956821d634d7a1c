"""Forwarder pipeline — normalize, process, enrich, then ship logs and spans.

One call to ``forward`` is one invocation. Logs and spans are shipped as two
independent branches joined before returning; each is split and retried on
its own, so a failing branch never affects the other.
"""

import asyncio
import logging

import httpx

from nrforwarder.attributes import common_attributes
from nrforwarder.config import Settings
from nrforwarder.errors import ConfigurationError
from nrforwarder.metadata import append_metadata
from nrforwarder.normalizer import normalize_batch
from nrforwarder.processors.registry import get_processor
from nrforwarder.sender import SPAN_HEADERS, HttpSender
from nrforwarder.shipper import PayloadShipper, ShipResult
from nrforwarder.structured import LogShape

logger = logging.getLogger(__name__)


def build_logs(messages, context, settings: Settings, processor) -> list:
    """Normalize a raw batch and run every record through *processor*, then enrich."""
    records = normalize_batch(messages, context)
    logs = [processor.process(record, context, settings) for record in records]
    return append_metadata(logs, LogShape(settings.custom_properties_prefix))


def extract_spans(logs: list, context, settings: Settings, processor) -> list:
    if not settings.forward_tracing:
        return []
    return processor.extract_spans(logs, context, settings)


async def forward(
    messages,
    context,
    settings: Settings,
    client: httpx.AsyncClient | None = None,
    sleep=asyncio.sleep,
) -> dict[str, ShipResult] | None:
    """Run one invocation over *messages*.

    Returns a ShipResult per shipped branch (``logs`` and, when spans were
    produced, ``spans``), or None when nothing was sent because the settings
    are invalid or the batch has no recognisable records.
    """
    context.log("New Relic Forwarder")
    try:
        settings.validate()
        processor = get_processor(settings.source_service_type)
    except ConfigurationError as exc:
        context.error(f"Invalid settings: {exc}")
        return None

    logs = build_logs(messages, context, settings, processor)
    context.log(f"Processing {len(logs)} records")
    if not logs:
        context.warn("logs format is invalid")
        return None

    spans = extract_spans(logs, context, settings, processor)
    common = common_attributes(context, settings)

    if client is None:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as owned:
            return await _ship(logs, spans, common, context, settings, owned, sleep)
    return await _ship(logs, spans, common, context, settings, client, sleep)


async def _ship(logs, spans, common, context, settings: Settings, client, sleep) -> dict[str, ShipResult]:
    shipper = PayloadShipper(settings, HttpSender(client, settings, sleep=sleep), common)

    if not spans:
        context.log("Sending logs to New Relic.")
        result = await shipper.ship(logs, "logs", settings.log_endpoint, {}, context)
        return {"logs": result}

    context.log("Sending spans and logs to New Relic.")
    log_result, span_result = await asyncio.gather(
        shipper.ship(logs, "logs", settings.log_endpoint, {}, context),
        shipper.ship(spans, "spans", settings.trace_endpoint, dict(SPAN_HEADERS), context),
    )
    return {"logs": log_result, "spans": span_result}

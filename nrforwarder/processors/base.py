"""Source processor contract shared by every Azure service variant."""

import copy
from abc import ABC, abstractmethod

from nrforwarder.config import Settings
from nrforwarder.structured import LogShape, split_record


class SourceProcessor(ABC):
    """Turns one raw record into a structured log and, optionally, spans.

    Subclasses implement ``build`` for records that carry a ``properties``
    object; other records are passed through unchanged. Variants that read
    everything they need from the record's top-level fields clear
    ``requires_properties`` and are built from an empty bag instead.
    Tracing-capable variants set ``supports_tracing`` and implement
    ``span_for``.
    """

    source_type: str = ""
    supports_tracing: bool = False
    requires_properties: bool = True

    def process(self, record, context, settings: Settings):
        if not isinstance(record, dict):
            return record
        properties, meta = split_record(copy.deepcopy(record))
        if properties is None and not self.requires_properties:
            properties = {}
        properties = self.prepare_properties(properties, context)
        if not isinstance(properties, dict):
            return record
        return self.build(properties, meta, LogShape(settings.custom_properties_prefix), context, settings)

    def prepare_properties(self, properties, context):
        """Hook for variants whose ``properties`` may arrive encoded."""
        return properties

    @abstractmethod
    def build(self, properties: dict, meta: dict, shape: LogShape, context, settings: Settings) -> dict:
        """Build the structured log from a record split into properties and meta."""

    def extract_spans(self, logs: list, context, settings: Settings) -> list[dict]:
        if not self.supports_tracing:
            context.warn(f"Tracing is not allowed for this service type {self.source_type}")
            return []
        shape = LogShape(settings.custom_properties_prefix)
        spans = []
        for log in logs:
            if not isinstance(log, dict):
                continue
            span = self.span_for(log, shape)
            if span is not None:
                spans.append(span)
        if logs and not spans:
            context.warn("No spans found in the logs.")
        return spans

    def span_for(self, log: dict, shape: LogShape) -> dict | None:
        """Return a span for a terminal structured log, or None."""
        return None


def split_decorations(fields: dict, allowed) -> tuple[dict, dict]:
    """Split *fields* into (promoted decoration properties, retained properties)."""
    promoted = {k: v for k, v in fields.items() if k in allowed}
    retained = {k: v for k, v in fields.items() if k not in allowed}
    return promoted, retained


def duration_attributes(duration_ms) -> dict:
    """Expose a millisecond duration both as ``duration.ms`` and seconds."""
    if isinstance(duration_ms, bool) or not isinstance(duration_ms, (int, float)):
        return {}
    return {"duration.ms": duration_ms, "duration": duration_ms / 1000}

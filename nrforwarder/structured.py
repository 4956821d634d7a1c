"""Structured-log shape and helpers for nested, partially-encoded fields.

A structured log is a plain dict so it serializes straight into the ingestion
payload::

    {
        "<prefix>": {...processed source properties...},
        "<prefix>.meta": {...everything else from the raw record...},
        "timestamp": 1704067200000,
        "level": "info",
        "trace.id": "...", "span.id": "...", "parent.id": "...",
    }

``LogShape`` owns the configured prefix so the dynamic keys are built in
exactly one place.
"""

import json
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from nrforwarder.errors import ParseError

_FRACTION_RE = re.compile(r"\.(\d+)")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class LogShape:
    """Key layout of a structured log for a given custom-properties prefix."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        self.meta_key = f"{prefix}.meta"

    def build(self, properties: dict, meta: dict, **top_level) -> dict:
        """Create a structured log; *top_level* entries with a None value are skipped."""
        log = {k: v for k, v in top_level.items() if v is not None}
        log[self.prefix] = properties
        log[self.meta_key] = meta
        timestamp = to_epoch_millis(meta.get("time"))
        if timestamp is not None:
            log["timestamp"] = timestamp
        return log

    def properties(self, log: dict) -> dict:
        value = log.get(self.prefix)
        return value if isinstance(value, dict) else {}

    def meta(self, log: dict) -> dict:
        value = log.get(self.meta_key)
        return value if isinstance(value, dict) else {}


def dig(mapping: Any, *keys: str) -> Any:
    """Follow *keys* through nested dicts, returning None at the first gap."""
    current = mapping
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def split_record(record: dict) -> tuple[Any, dict]:
    """Separate ``properties`` from the rest of a raw record (the meta)."""
    meta = {k: v for k, v in record.items() if k != "properties"}
    return record.get("properties"), meta


def to_json(value: Any) -> str:
    """Compact JSON, matching what the ingestion backend re-parses."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def decode_json(value: str, lenient: bool = False) -> Any:
    """Decode a JSON-encoded string field.

    With *lenient*, text that is not valid JSON gets a second attempt with
    single quotes swapped for double quotes, which accepts the single-quoted
    pseudo-JSON some Azure services emit.
    """
    if not isinstance(value, str):
        raise ParseError(f"Expected a JSON string, got {type(value).__name__}")
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        if not lenient:
            raise ParseError(str(exc)) from exc
    try:
        return json.loads(value.replace("'", '"'))
    except json.JSONDecodeError as exc:
        raise ParseError(str(exc)) from exc


def retag_json_field(container: Any, key: str, tag: str, context, label: str) -> None:
    """Re-serialize ``container[key]`` compactly and prefix it with ``<tag>::``.

    Only JSON-encoded strings are tagged; any other value, or a string that
    cannot be decoded, stays untouched with a warning.
    """
    if not isinstance(container, dict) or key not in container:
        return
    value = container[key]
    try:
        encoded = to_json(decode_json(value))
    except (ParseError, TypeError, ValueError):
        context.warn(f"Can't process {label}.")
        return
    container[key] = f"{tag}::{encoded}"


def to_epoch_millis(value: Any) -> int | None:
    """Convert an ISO-8601 timestamp (or epoch millis) to epoch milliseconds."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # Azure emits 7 fractional digits; fromisoformat accepts at most 6
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - _EPOCH) // timedelta(milliseconds=1)


def strip_hyphens(value: Any) -> str | None:
    if not isinstance(value, str) or not value:
        return None
    return value.replace("-", "")

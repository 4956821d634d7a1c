"""Input normalizer — coerces a raw trigger batch into an ordered list of raw records.

Accepted batches:
  - text or bytes: a single JSON document, or newline-delimited documents
  - a single decoded object
  - a list of any mix of the above

Classification (first match wins):
  1. object with ``records``          → each record
  2. plain object                     → the object itself
  3. list of objects with ``records`` → concatenation of every inner ``records``
  4. list of plain objects            → each object
  5. list of strings                  → ``{"message": <string>}`` per string
Anything else is a FormatError and yields no records.
"""

import json
import logging
from typing import Any

from nrforwarder.errors import FormatError

logger = logging.getLogger(__name__)


def _decode(item: Any) -> Any:
    """JSON-decode a single text/bytes item, returning it unchanged on failure."""
    if isinstance(item, (bytes, bytearray)):
        item = item.decode("utf-8", errors="replace")
    if not isinstance(item, str):
        return item
    try:
        return json.loads(item)
    except json.JSONDecodeError:
        return item


def parse_data(batch: Any, context) -> Any:
    """Decode the batch without ever failing as a whole.

    Non-list batches are decoded as one document first; text that is not a
    single document is treated as newline-delimited. List elements are
    decoded independently and kept as raw text when they are not JSON.
    """
    if isinstance(batch, tuple):
        batch = list(batch)

    if not isinstance(batch, list):
        if isinstance(batch, (bytes, bytearray)):
            batch = batch.decode("utf-8", errors="replace")
        if not isinstance(batch, str):
            return batch
        try:
            return json.loads(batch)
        except json.JSONDecodeError:
            lines = [line for line in batch.strip().split("\n") if line.strip()]
            if len(lines) <= 1:
                context.warn("Cannot parse logs to JSON")
                return batch
            batch = lines

    return [_decode(item) for item in batch]


def _as_record(item: Any) -> dict:
    return item if isinstance(item, dict) else {"message": item}


def _records_of(message: dict) -> list:
    records = message["records"]
    if not isinstance(records, list):
        records = [records]
    return [_as_record(record) for record in records]


def classify(parsed: Any, context) -> list:
    """Flatten a decoded batch into raw records; raises FormatError for unknown shapes."""
    if isinstance(parsed, dict):
        if "records" in parsed:
            context.log("Type of logs: records Object")
            return _records_of(parsed)
        context.log("Type of logs: JSON Object")
        return [parsed]

    if not isinstance(parsed, list) or not parsed:
        raise FormatError(f"Unsupported batch of type {type(parsed).__name__}")

    first = parsed[0]
    if isinstance(first, dict):
        if "records" in first:
            context.log("Type of logs: records Array")
            records = []
            for message in parsed:
                if isinstance(message, dict) and "records" in message:
                    records.extend(_records_of(message))
                else:
                    records.append(_as_record(message))
            return records
        context.log("Type of logs: JSON Array")
        return [_as_record(item) for item in parsed]

    if isinstance(first, str):
        context.log("Type of logs: string Array")
        return [_as_record(item) for item in parsed]

    raise FormatError(f"Unsupported list element of type {type(first).__name__}")


def normalize_batch(batch: Any, context) -> list:
    """Decode and flatten *batch*; an unrecognised shape yields an empty list."""
    parsed = parse_data(batch, context)
    try:
        return classify(parsed, context)
    except FormatError as exc:
        logger.debug("Batch rejected: %s", exc)
        return []

"""Gzip compression of serialized payloads."""

import gzip
import json
import zlib

from nrforwarder.errors import CompressionError


def serialize_payload(payload) -> bytes:
    """Serialize a payload to UTF-8 JSON bytes."""
    try:
        return json.dumps(payload, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise CompressionError(f"Payload is not JSON serializable: {exc}") from exc


def compress_payload(payload, level: int = 6) -> bytes:
    """Serialize and gzip *payload*; failures surface as CompressionError."""
    data = serialize_payload(payload)
    try:
        return gzip.compress(data, compresslevel=level)
    except (OSError, zlib.error, ValueError) as exc:
        raise CompressionError(str(exc)) from exc

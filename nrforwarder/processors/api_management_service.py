"""Azure API Management Service processor (tracing-capable)."""

from nrforwarder.config import Settings
from nrforwarder.processors.base import SourceProcessor, duration_attributes
from nrforwarder.structured import LogShape, dig, retag_json_field

KIND_RESPONSE = "response"
KIND_ERROR = "error"

# (section, field, tag, label)
_ENCODED_FIELDS = (
    ("request", "body", "RequestBody", "request body"),
    ("request", "headers", "RequestHeaders", "request headers"),
    ("response", "body", "ResponseBody", "response body"),
    ("response", "headers", "ResponseHeaders", "response headers"),
)


def _status_code(properties: dict):
    code = dig(properties, "response", "status", "code")
    if isinstance(code, bool):
        return None
    if isinstance(code, str) and code.isdigit():
        return int(code)
    return code if isinstance(code, int) else None


class APIManagementServiceProcessor(SourceProcessor):
    source_type = "@azure/APIManagementService"
    supports_tracing = True

    def build(self, properties: dict, meta: dict, shape: LogShape, context, settings: Settings) -> dict:
        for section, field, tag, label in _ENCODED_FIELDS:
            container = properties.get(section)
            if field == "headers" and section == "response" and dig(properties, section, field) == "{}":
                continue
            retag_json_field(container, field, tag, context, label)

        trace_id = meta.pop("traceId", None)
        span_id = meta.pop("spanId", None)
        parent_id = meta.pop("parentSpanId", None)
        correlation = {}
        if trace_id is not None and span_id is not None:
            correlation = {"trace.id": trace_id, "span.id": span_id, "parent.id": parent_id}

        status = _status_code(properties)
        failed = meta.get("kind") == KIND_ERROR or (status is not None and status >= 400)

        return shape.build(
            properties,
            meta,
            serviceName=meta.get("serviceName"),
            level="error" if failed else "info",
            **correlation,
        )

    def span_for(self, log: dict, shape: LogShape) -> dict | None:
        meta = shape.meta(log)
        if meta.get("kind") not in (KIND_RESPONSE, KIND_ERROR):
            return None

        properties = shape.properties(log)
        request = properties.get("request") if isinstance(properties.get("request"), dict) else {}
        attributes = {
            **duration_attributes(meta.get("timespan")),
            "name": dig(request, "originalUrl", "path"),
            "host": dig(request, "originalUrl", "host"),
            "http.method": request.get("method"),
            "http.url": _http_url(request),
        }

        if log.get("parent.id") is not None:
            attributes["parent.id"] = log["parent.id"]
        if log.get("serviceName") is not None:
            attributes["service.name"] = log["serviceName"]

        status = _status_code(properties)
        reason = dig(properties, "response", "status", "reason")
        if status is not None:
            attributes["http.statusCode"] = status
            if status >= 400:
                attributes["error"] = True
                attributes["error.message"] = reason
                attributes["error.class"] = reason
        if reason is not None:
            attributes["http.statusText"] = reason

        error = properties.get("error")
        if isinstance(error, dict):
            attributes["error"] = True
            attributes["error.message"] = error.get("message")
            attributes["error.class"] = error.get("reason")
            attributes["error.source"] = error.get("source")
            attributes["error.section"] = error.get("section")

        return {
            "trace.id": log.get("trace.id"),
            "id": log.get("span.id"),
            "timestamp": log.get("timestamp", meta.get("time")),
            "attributes": {k: v for k, v in attributes.items() if v is not None},
        }


def _http_url(request: dict) -> str | None:
    url = request.get("url")
    if not isinstance(url, dict) or not url.get("host"):
        return None
    scheme = url.get("scheme") or "https"
    return f"{scheme}://{url['host']}{url.get('path') or ''}"

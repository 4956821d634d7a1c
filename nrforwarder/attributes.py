"""Common attributes and payload envelope shared by every outbound chunk."""

from nrforwarder.config import Settings
from nrforwarder.version import VERSION


def parse_tags(raw: str | None) -> dict:
    """Parse ``key:value;key:value`` into a dict.

    Pairs without a ``:`` are ignored and later duplicates win. Only the first
    ``:`` separates key from value, so values may contain colons.
    """
    tags: dict = {}
    if not raw:
        return tags
    for pair in raw.split(";"):
        key, sep, value = pair.partition(":")
        key = key.strip()
        if sep and key:
            tags[key] = value.strip()
    return tags


def common_attributes(context, settings: Settings) -> dict:
    """Build the ``common`` block: plugin identity, invocation, environment, tags."""
    attributes = {
        "plugin.type": settings.logs_source,
        "plugin.version": VERSION,
        "azure.forwardername": context.function_name,
        "azure.invocationid": context.invocation_id,
        "environment": settings.environment,
    }
    if settings.service_name:
        attributes["serviceName"] = settings.service_name
    if settings.tags:
        attributes["tags"] = parse_tags(settings.tags)
    return {"attributes": attributes}


def build_payload(common: dict, kind: str, items: list) -> list[dict]:
    """Wrap *items* as ``[{"common": ..., <kind>: items}]``."""
    return [{"common": common, kind: items}]

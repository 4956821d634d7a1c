"""Metadata enricher — derives subscription/resource-group/source from an ARM resourceId."""

from nrforwarder.structured import LogShape

_ARM_PREFIX = "/subscriptions/"


def resource_metadata(resource_id) -> dict | None:
    """Parse an ARM resource id into a metadata dict, or None if it is not one.

    ``/subscriptions/{sub}/resourceGroups/{rg}/providers/{provider}/...``
    maps to ``{"subscriptionId": sub, "resourceGroup": rg,
    "source": provider with "microsoft." replaced by "azure."}``.
    Matching is case-insensitive and the values are lower-cased.
    """
    if not isinstance(resource_id, str):
        return None
    lowered = resource_id.lower()
    if not lowered.startswith(_ARM_PREFIX):
        return None

    segments = lowered.split("/")
    metadata = {"subscriptionId": segments[2]}
    if len(segments) > 4:
        metadata["resourceGroup"] = segments[4]
    if len(segments) > 6 and segments[6]:
        metadata["source"] = segments[6].replace("microsoft.", "azure.", 1)
    return metadata


def add_metadata(log: dict, shape: LogShape) -> dict:
    """Attach ``metadata`` next to the record's resourceId.

    Processed logs keep resourceId under ``<prefix>.meta``; records a processor
    passed through unchanged keep it at the top level. Either way the result
    depends only on resourceId, so enriching twice is harmless.
    """
    if not isinstance(log, dict):
        return log
    meta = log.get(shape.meta_key)
    target = meta if isinstance(meta, dict) and "resourceId" in meta else log
    metadata = resource_metadata(target.get("resourceId"))
    if metadata is not None:
        target["metadata"] = metadata
    return log


def append_metadata(logs: list, shape: LogShape) -> list:
    return [add_metadata(log, shape) for log in logs]

"""Azure Container Apps console-log processor."""

from nrforwarder.config import Settings
from nrforwarder.errors import ParseError
from nrforwarder.processors.base import SourceProcessor, split_decorations
from nrforwarder.structured import LogShape, decode_json, to_json

MESSAGE_TAG = "Message"


class ContainerAppsProcessor(SourceProcessor):
    source_type = "@azure/ContainerApps"

    def build(self, properties: dict, meta: dict, shape: LogShape, context, settings: Settings) -> dict:
        properties = dict(properties)
        entry = properties.pop("Log", None)

        if isinstance(entry, str):
            try:
                entry = decode_json(entry)
            except ParseError:
                context.warn("Can not parse properties.Log to JSON")

        promoted: dict = {}
        if isinstance(entry, dict):
            siblings = dict(entry)
            message = siblings.pop("message", None)
            promoted, retained = split_decorations(siblings, settings.decoration_properties)
            properties = {**retained, **properties}
        else:
            message = entry if entry is not None else ""

        log = shape.build(
            properties,
            meta,
            serviceName=properties.get("ContainerAppName"),
        )
        return {**promoted, **log, "message": f"{MESSAGE_TAG}::{to_json(message)}"}

"""Azure Function App processor."""

from nrforwarder.config import Settings
from nrforwarder.errors import ParseError
from nrforwarder.processors.base import SourceProcessor, split_decorations
from nrforwarder.structured import LogShape, decode_json

LEVELS = {0: "trace", 1: "debug", 2: "info", 3: "warn", 4: "error", 5: "error"}
DEFAULT_LEVEL = "info"


def map_level(code) -> str:
    """Map a numeric Functions host log level (0-5) to a log level name."""
    if isinstance(code, bool):
        return DEFAULT_LEVEL
    if isinstance(code, str) and code.strip().isdigit():
        code = int(code)
    return LEVELS.get(code, DEFAULT_LEVEL) if isinstance(code, int) else DEFAULT_LEVEL


def _looks_like_json(value) -> bool:
    return isinstance(value, str) and value.lstrip()[:1] in ("{", "[")


class FunctionAppProcessor(SourceProcessor):
    source_type = "@azure/FunctionApp"

    def prepare_properties(self, properties, context):
        if isinstance(properties, str):
            try:
                return decode_json(properties, lenient=True)
            except ParseError:
                context.warn("Can not parse properties to JSON")
        return properties

    def build(self, properties: dict, meta: dict, shape: LogShape, context, settings: Settings) -> dict:
        promoted: dict = {}
        message = properties.get("message")

        if _looks_like_json(message):
            try:
                decoded = decode_json(message, lenient=True)
            except ParseError:
                context.warn("Can not parse properties.message to JSON")
            else:
                if isinstance(decoded, dict):
                    message = decoded

        if isinstance(message, dict):
            inner = dict(message)
            inner_message = inner.pop("message", None)
            promoted, retained = split_decorations(inner, settings.decoration_properties)
            properties = {**properties, **retained, "message": inner_message}
            if inner_message is None:
                del properties["message"]
        elif isinstance(message, str) and message:
            properties = {k: v for k, v in properties.items() if k != "message"}
            promoted = {"message": message}

        level_code = properties.get("levelId", properties.get("level"))
        log = shape.build(
            properties,
            meta,
            serviceName=properties.get("appName"),
            level=map_level(level_code),
        )
        return {**promoted, **log}

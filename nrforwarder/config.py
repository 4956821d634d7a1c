"""Configuration module — frozen dataclass loaded from a YAML file and environment variables."""

import dataclasses
import logging
import os
from dataclasses import dataclass

import yaml

from nrforwarder.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_LOG_ENDPOINT = "https://log-api.newrelic.com/log/v1"
DEFAULT_TRACE_ENDPOINT = "https://trace-api.newrelic.com/trace/v1"
DEFAULT_MAX_PAYLOAD_SIZE = 1000 * 1024
DEFAULT_DECORATION_PROPERTIES = (
    "trace.id",
    "span.id",
    "entity.guid",
    "entity.name",
    "entity.type",
    "hostname",
    "service.name",
)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def _parse_int(value, default: int) -> int:
    """Parse an integer, falling back to *default* on anything unparseable."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def _parse_list(value) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(str(item).strip() for item in value if str(item).strip())
    return tuple(item.strip() for item in str(value).split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    license_key: str = ""
    log_endpoint: str = DEFAULT_LOG_ENDPOINT
    trace_endpoint: str = DEFAULT_TRACE_ENDPOINT
    max_retries: int = 3
    retry_interval_ms: int = 2000
    environment: str = "dev"
    service_name: str | None = None
    source_service_type: str = ""
    forward_tracing: bool = False
    custom_properties_prefix: str = "custom"
    tags: str | None = None
    max_payload_size_bytes: int = DEFAULT_MAX_PAYLOAD_SIZE
    decoration_properties: tuple[str, ...] = DEFAULT_DECORATION_PROPERTIES
    http_timeout_seconds: float = 30.0
    logs_source: str = "azure"
    log_level: str = "INFO"

    def validate(self) -> None:
        """Raise ConfigurationError if a required setting is missing."""
        if not self.license_key:
            raise ConfigurationError("You have to configure your New Relic license key.")
        if not self.source_service_type:
            raise ConfigurationError("You have to configure your source service type.")


# env var -> (field name, converter)
_ENV_FIELDS = {
    "NR_LICENSE_KEY": ("license_key", str),
    "NR_LOG_ENDPOINT": ("log_endpoint", str),
    "NR_TRACE_ENDPOINT": ("trace_endpoint", str),
    "NR_MAX_RETRIES": ("max_retries", int),
    "NR_RETRY_INTERVAL": ("retry_interval_ms", int),
    "NR_ENVIRONMENT": ("environment", str),
    "NR_SERVICE_NAME": ("service_name", str),
    "NR_SOURCE_SERVICE_TYPE": ("source_service_type", str),
    "NR_FORWARD_TRACING": ("forward_tracing", bool),
    "NR_CUSTOM_PROPERTIES_PREFIX": ("custom_properties_prefix", str),
    "NR_TAGS": ("tags", str),
    "NR_MAX_PAYLOAD_SIZE": ("max_payload_size_bytes", int),
    "NR_DECORATION_PROPERTIES": ("decoration_properties", tuple),
    "NR_HTTP_TIMEOUT": ("http_timeout_seconds", float),
    "NR_LOG_LEVEL": ("log_level", str),
}


def _coerce(field_name: str, kind, value):
    default = Settings.__dataclass_fields__[field_name].default
    if kind is int:
        return _parse_int(value, default)
    if kind is float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return default
    if kind is bool:
        return value if isinstance(value, bool) else _parse_bool(str(value))
    if kind is tuple:
        return _parse_list(value)
    return str(value)


def _load_yaml(path: str) -> dict:
    """Load settings overrides from a YAML file; missing or invalid files yield {}."""
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning("Settings file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as exc:
        logger.warning("Invalid YAML in %s, using defaults: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def load_settings(config_path: str | None = None, environ=None) -> Settings:
    """Build Settings from defaults <- YAML file <- env vars (highest priority)."""
    if environ is None:
        environ = os.environ

    kinds = {name: kind for name, kind in _ENV_FIELDS.values()}
    kwargs: dict = {}

    path = config_path or environ.get("NR_CONFIG_FILE")
    if path:
        for key, value in _load_yaml(path).items():
            if key in kinds and value is not None:
                kwargs[key] = _coerce(key, kinds[key], value)

    for env_name, (field_name, kind) in _ENV_FIELDS.items():
        value = environ.get(env_name)
        if value:
            kwargs[field_name] = _coerce(field_name, kind, value)

    settings = Settings(**kwargs)
    return dataclasses.replace(settings, log_level=settings.log_level.upper())

"""Static registry of source processors keyed by source service type."""

from nrforwarder.errors import ConfigurationError
from nrforwarder.processors.api_management_service import APIManagementServiceProcessor
from nrforwarder.processors.base import SourceProcessor
from nrforwarder.processors.container_apps import ContainerAppsProcessor
from nrforwarder.processors.data_factory import DataFactoryProcessor
from nrforwarder.processors.function_app import FunctionAppProcessor

NAMESPACE = "@azure/"

PROCESSORS: dict[str, SourceProcessor] = {
    processor.source_type: processor
    for processor in (
        APIManagementServiceProcessor(),
        FunctionAppProcessor(),
        DataFactoryProcessor(),
        ContainerAppsProcessor(),
    )
}


def get_processor(source_service_type: str | None) -> SourceProcessor:
    """Return the processor for *source_service_type* (``@azure/`` prefix optional)."""
    if not source_service_type:
        raise ConfigurationError("You have to configure your source service type.")
    key = source_service_type.strip()
    if not key.startswith(NAMESPACE):
        key = NAMESPACE + key
    try:
        return PROCESSORS[key]
    except KeyError:
        raise ConfigurationError(
            f"Unknown source service type {source_service_type!r}; "
            f"expected one of {', '.join(sorted(PROCESSORS))}"
        ) from None

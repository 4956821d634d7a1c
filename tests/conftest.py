import dataclasses
import logging

import pytest

from nrforwarder.config import Settings
from nrforwarder.context import ExecutionContext


@pytest.fixture
def context():
    return ExecutionContext(
        function_name="fnlogforwarder",
        invocation_id="inv-1234",
        logger=logging.getLogger("nrforwarder.test"),
    )


@pytest.fixture
def make_settings():
    """Factory for Settings with a license key and fast retries."""

    def _make(**overrides) -> Settings:
        base = Settings(
            license_key="test-license-key",
            source_service_type="@azure/APIManagementService",
            retry_interval_ms=10,
        )
        return dataclasses.replace(base, **overrides)

    return _make

"""Execution context handed to the pipeline by the trigger adapter."""

import logging
import uuid


class ExecutionContext:
    """Identity of one invocation plus its log/warn/error capabilities.

    Diagnostics are routed to a standard ``logging.Logger`` so the hosting
    process decides where they end up.
    """

    def __init__(
        self,
        function_name: str = "nrforwarder",
        invocation_id: str | None = None,
        logger: logging.Logger | None = None,
    ):
        self.function_name = function_name
        self.invocation_id = invocation_id or str(uuid.uuid4())
        self._logger = logger or logging.getLogger("nrforwarder")

    def log(self, msg: str) -> None:
        self._logger.info(msg)

    def warn(self, msg: str) -> None:
        self._logger.warning(msg)

    def error(self, msg: str) -> None:
        self._logger.error(msg)

"""Error taxonomy for the forwarding pipeline.

Each error is contained at the smallest unit that can fail (a record, a chunk,
a branch) and reported through the execution context. Only configuration
errors stop an invocation.
"""


class ForwarderError(Exception):
    """Base class for all forwarder errors."""


class ConfigurationError(ForwarderError):
    """Missing license key or unknown/missing source service type."""


class ParseError(ForwarderError):
    """A raw record or nested sub-field could not be decoded."""


class FormatError(ForwarderError):
    """The decoded batch does not match any recognised shape."""


class CompressionError(ForwarderError):
    """Gzip compression of a payload failed."""


class OversizeError(ForwarderError):
    """A single record still exceeds the payload ceiling once compressed."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Cannot send the payload as the size of single line exceeds the limit "
            f"({size} bytes > {limit} bytes)"
        )
        self.size = size
        self.limit = limit


class DeliveryError(ForwarderError):
    """Non-202 response or transport failure while posting a chunk."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

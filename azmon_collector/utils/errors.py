"""Error taxonomy for collector initialization and poll cycles."""


class CollectorError(Exception):
    """Base class for errors surfaced to the host by a collector."""


class ConfigurationError(CollectorError):
    """A required setting is missing or invalid. Fatal at initialization."""


class CredentialError(CollectorError):
    """The identity provider could not supply a credential or token."""


class TransportError(CollectorError):
    """Network or I/O failure while sending the request or reading the body."""


class ProviderError(CollectorError):
    """The monitoring API answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"Azure monitor request returned error. Status {status_code}:\n{body}"
        )


class DecodeError(CollectorError):
    """The response body is not valid JSON or does not match the payload shape."""


class MalformedTimestampError(ValueError):
    """
    A datum timestamp is not valid RFC3339.

    Never surfaced from a poll cycle: the bucketizer drops the affected
    field set and carries on.
    """

    def __init__(self, timestamp: str):
        self.timestamp = timestamp
        super().__init__(f"Invalid RFC3339 timestamp: {timestamp!r}")

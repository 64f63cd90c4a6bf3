"""
Exceptions raised by the estimation engine and its provider clients.
"""


class EstimationError(Exception):
    """Base class for every failure the engine reports."""


class InvalidInput(EstimationError):
    """Sizing or request parameters are out of range."""


class LocationNotFound(EstimationError):
    """The geocoder had no match for the address."""


class UpstreamDataError(EstimationError):
    """A provider answered, but reported explicit errors in its payload."""

    def __init__(self, messages):
        self.messages = list(messages)
        super().__init__(", ".join(str(m) for m in self.messages))


class MalformedResponse(EstimationError):
    """A provider payload is missing the fields we need."""


class ProviderError(EstimationError):
    """Transport or HTTP-level failure talking to a provider."""


class MissingApiKey(EstimationError):
    """A provider client was called without its API key."""

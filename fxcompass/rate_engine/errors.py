"""
Rate engine exception hierarchy.

``SourceUnavailable`` is a provider failure and is absorbed by the
aggregator.  ``InvalidInput`` subclasses describe bad caller input and
always propagate so the caller can reject it.
"""


class RateEngineError(Exception):
    """Base class for rate engine errors."""


class SourceUnavailable(RateEngineError):
    """A rate provider could not be reached or returned an unusable response."""

    def __init__(self, provider: str, instrument: str, reason: str):
        self.provider = provider
        self.instrument = instrument
        self.reason = reason
        super().__init__(f"{provider} unavailable for {instrument}: {reason}")


class UnknownInstrument(RateEngineError, KeyError):
    """The instrument has no cache entry in this session."""

    def __init__(self, instrument: str):
        self.instrument = instrument
        super().__init__(instrument)

    def __str__(self) -> str:
        return f"Unknown instrument: {self.instrument}"


class InvalidInput(RateEngineError, ValueError):
    """Caller-supplied input was rejected."""


class InvalidMargin(InvalidInput):
    pass


class InvalidAmount(InvalidInput):
    pass


class InvalidRate(InvalidInput):
    pass


class UnsupportedCurrency(InvalidInput):
    pass

"""Error taxonomy for the lending engine.

Every engine error is a ValueError so callers that already treat bad input as
ValueError keep working.
"""


class LendingEngineError(ValueError):
    """Base exception for all lending engine errors."""


class InvalidLoanParameters(LendingEngineError):
    """Raised for non-positive principal, negative rates, fees or terms."""


class UnsupportedRateType(LendingEngineError):
    """Raised when a rate type tag is not one of the supported models."""

    def __init__(self, rate_type):
        self.rate_type = rate_type
        super().__init__(f"Unsupported rate type: {rate_type!r}")


class InvalidPaymentError(LendingEngineError):
    """Raised when a payment cannot be applied to a loan."""

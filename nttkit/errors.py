"""
Error taxonomy for the NTT engine.

All errors are raised synchronously at the violating construction or
call and are never retried internally.
"""


class NttError(ValueError):
    """Base class for NTT engine errors."""


class InvalidConfiguration(NttError):
    """Order is not a power of two, modulus is not prime, or root search failed."""


class UnsupportedOrder(NttError):
    """Requested order exceeds the 2-power part of (modulus - 1)."""


class SizeExceedsOrder(NttError):
    """A transform call needs more points than the configured order."""


class InvalidCutoff(NttError):
    """A truncation length is negative or not an integer."""


class InvalidSize(NttError):
    """A transform length is not a power of two."""

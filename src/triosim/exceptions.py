"""
Custom exceptions for triosim.

Invalid parameters and internal-consistency failures abort the current
operation. Insufficient data and numerical degeneracy are expected in the
course of an EM loop and are meant to be handled by the caller.
"""


class TrioSimError(Exception):
    """Base exception for triosim errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


class InvalidParameterError(TrioSimError, ValueError):
    """Raised when a caller-supplied parameter is out of range or malformed."""
    pass


class InternalConsistencyError(TrioSimError):
    """Raised when an invariant that should always hold is broken."""
    pass


class InsufficientDataError(TrioSimError):
    """Raised when an estimate is requested without accumulated sites."""
    pass


class NumericalDegeneracyError(TrioSimError):
    """Raised when accumulated statistics are NaN or infinite."""
    pass


class ConfigurationError(TrioSimError):
    """Raised when configuration is invalid."""
    pass

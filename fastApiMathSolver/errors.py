__all__ = [
    'ValidationError',
    'SolverError',
    'AuthError',
    'ProviderError',
    'SolverTimeoutError',
]


class ValidationError(Exception):
    """The request is missing a required field."""


class SolverError(Exception):
    """Base class for failures of the generative model call."""


class AuthError(SolverError):
    """Missing or rejected provider credential."""


class ProviderError(SolverError):
    """The remote call failed or returned no usable completion."""


class SolverTimeoutError(SolverError, TimeoutError):
    """No completion arrived before the configured deadline."""

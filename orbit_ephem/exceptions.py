"""
Error types raised by the orbit ephemeris library.

Search exhaustion and numerical non-convergence are not errors: searches
return empty or tagged results, and solvers return their best estimate.
"""


class OrbitEphemError(Exception):
    """Base class for all library errors."""


class InvalidElementsError(OrbitEphemError, ValueError):
    """Orbital elements are outside the domain of the propagation models."""


class TLEFormatError(InvalidElementsError):
    """A two-line element set could not be parsed."""


class InvalidSearchParameterError(OrbitEphemError, ValueError):
    """An event search was requested with out-of-range parameters."""


class PropagationError(OrbitEphemError, RuntimeError):
    """
    Propagation produced a physically impossible state.

    Attributes:
        tsince: Minutes since epoch of the failing request
        physical_meaning: Human readable interpretation of the failure
    """

    def __init__(self, message: str, tsince: float, physical_meaning: str = ""):
        super().__init__(message)
        self.tsince = tsince
        self.physical_meaning = physical_meaning

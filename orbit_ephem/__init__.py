"""
SGP8/SDP8 Orbit Propagation and Event Search Package

This package propagates NORAD two-line element sets with the SGP8 near-earth
and SDP8 deep-space models and turns the resulting states into observer
ephemerides, pass predictions, Iridium-type flares and Sun/Moon transits.

Modules:
    elements: TLE parsing and the OrbitalElements value type
    preprocessor: Epoch-time preprocessing into an immutable PropagationState
    propagator: Near-earth and deep-space propagators
    deep_space: Lunar-solar and resonance corrections
    topocentric: Observer geometry and ephemeris projection
    events: Pass search and rise/set/transit refinement
    flares: Solar and lunar flare search
    transits: Sun and Moon transit search

References:
    Hoots, F. R., & Roehrich, R. L. (1980). "Spacetrack Report No. 3".
"""

from typing import Optional

from orbit_ephem.elements import OrbitalElements, parse_tle, parse_tle_text
from orbit_ephem.events import PassResult, RiseSetTransit, next_pass, rise_set_transit
from orbit_ephem.exceptions import (
    InvalidElementsError, InvalidSearchParameterError, OrbitEphemError,
    PropagationError, TLEFormatError,
)
from orbit_ephem.flares import (
    FlareWindow, IlluminatingBody, next_flares, next_lunar_flares, next_solar_flares,
)
from orbit_ephem.propagator import StateVector, propagate
from orbit_ephem.satellite import Satellite
from orbit_ephem.timekeeping import PrecisionMode, datetime_to_jd, jd_to_datetime
from orbit_ephem.topocentric import EclipseStatus, Ephemeris, ObserverGeometry
from orbit_ephem.transits import TransitBody, TransitEvent, next_sun_moon_transits

__version__ = "1.0.0"


def ephemeris_at(elements: OrbitalElements, jd: float, observer: ObserverGeometry,
                 mode: Optional[PrecisionMode] = None) -> Ephemeris:
    """One-shot ephemeris; use Satellite to evaluate many instants."""
    return Satellite(elements).ephemeris_at(jd, observer, mode)


__all__ = [
    "EclipseStatus", "Ephemeris", "FlareWindow", "IlluminatingBody",
    "InvalidElementsError", "InvalidSearchParameterError", "ObserverGeometry",
    "OrbitEphemError", "OrbitalElements", "PassResult", "PrecisionMode",
    "PropagationError", "RiseSetTransit", "Satellite", "StateVector",
    "TLEFormatError", "TransitBody", "TransitEvent", "datetime_to_jd",
    "ephemeris_at", "jd_to_datetime", "next_flares", "next_lunar_flares",
    "next_pass", "next_solar_flares", "next_sun_moon_transits", "parse_tle",
    "parse_tle_text", "propagate", "rise_set_transit",
]

"""
Pass Search and Rise/Set/Transit Refinement

Passes are found by scanning the elevation function forward in whole minutes,
with larger steps while the satellite is far below the horizon, and then
backtracking to the first minute above the threshold. Rise, set and transit
are refined from a pass with one-second walks.

All loops are bounded, so an unreachable pass ends in PassResult.not_found()
rather than an endless scan.
"""

import logging
import math
from typing import NamedTuple, Optional, Union

from config import (
    DEFAULT_HORIZON_ARCMIN, GRAVITATIONAL_PARAMETER, MEAN_EARTH_RADIUS_KM,
    MINUTES_PER_DAY, QUICK_SEARCH_MAX_STEP, QUICK_SEARCH_MIN_STEP,
    RISE_SET_MAX_ITERATIONS, SECONDS_PER_DAY, config,
)
from orbit_ephem.elements import OrbitalElements
from orbit_ephem.exceptions import InvalidSearchParameterError
from orbit_ephem.satellite import as_satellite
from orbit_ephem.timekeeping import TWOPI, PrecisionMode
from orbit_ephem.topocentric import ObserverGeometry

logger = logging.getLogger(__name__)

# Coarse scan steps shrink above these elevations
FAR_BELOW_HORIZON = math.radians(-25.0)
BELOW_HORIZON = math.radians(-15.0)

DEFAULT_HORIZON = math.radians(DEFAULT_HORIZON_ARCMIN / 60.0)
RISE_SET_MIN_ELEVATION = math.radians(15.0)
RISE_SET_SEARCH_DAYS = 7.0


class PassResult(NamedTuple):
    """Outcome of a pass search. ``jd`` is only meaningful when ``found``."""

    found: bool
    jd: float
    eclipsed: bool

    @classmethod
    def not_found(cls) -> "PassResult":
        return cls(False, 0.0, False)

    @classmethod
    def from_jd(cls, jd: float, eclipsed: bool) -> "PassResult":
        return cls(True, jd, eclipsed)

    @property
    def signed_jd(self) -> float:
        """Legacy encoding: 0 when not found, negative when eclipsed."""
        if not self.found:
            return 0.0
        return -self.jd if self.eclipsed else self.jd

    def __bool__(self):
        return self.found


class RiseSetTransit(NamedTuple):
    """Refined pass times (JD). ``None`` marks a walk that hit its cap."""

    rise: Optional[float]
    set: Optional[float]
    transit: Optional[float]
    transit_elevation: float
    converged: bool

    @classmethod
    def empty(cls) -> "RiseSetTransit":
        return cls(None, None, None, 0.0, False)


def validate_search(observer: Optional[ObserverGeometry], min_elevation: float,
                    max_days: float) -> None:
    """
    Check the common event search arguments.

    Raises:
        InvalidSearchParameterError: If the observer is missing, the elevation
            is outside [0, 90) degrees or the horizon is not positive
    """
    if observer is None:
        raise InvalidSearchParameterError("An observer is required for event searches")
    observer.validate()
    if not 0.0 <= min_elevation < math.pi / 2.0:
        raise InvalidSearchParameterError(
            f"Minimum elevation {math.degrees(min_elevation):.3f} deg outside [0, 90)"
        )
    if not max_days > 0.0:
        raise InvalidSearchParameterError(f"Search horizon must be positive, got {max_days} days")
    if max_days > config.MAX_SEARCH_DAYS:
        raise InvalidSearchParameterError(
            f"Search horizon {max_days} days exceeds the limit of {config.MAX_SEARCH_DAYS} days"
        )


def quick_search_step(elements: OrbitalElements, min_elevation: float) -> int:
    """
    Coarse scan step in minutes.

    Half the time the satellite needs to cross the visible arc above
    ``min_elevation``, estimated from the mean orbital height, so a pass
    cannot be stepped over.

    Args:
        elements: Orbital elements
        min_elevation: Minimum elevation (radians)

    Returns:
        Step in minutes, between 1 and 8
    """
    n = elements.mean_motion_rad_per_sec
    e = elements.eccentricity
    a = (GRAVITATIONAL_PARAMETER / (n * n)) ** (1.0 / 3.0)
    b = a * math.sqrt(1.0 - e * e)
    height = (a + b) / 2.0 - MEAN_EARTH_RADIUS_KM
    span_days = (math.pi / 2.0 - 2.0 * min_elevation) * height / (TWOPI * (height + MEAN_EARTH_RADIUS_KM))

    quick = int(0.5 + span_days * MINUTES_PER_DAY / 2.0)
    return max(QUICK_SEARCH_MIN_STEP, min(QUICK_SEARCH_MAX_STEP, quick))


def next_pass(satellite, observer: ObserverGeometry, jd: float, min_elevation: float,
              max_days: float, include_current: bool = False,
              mode: PrecisionMode = PrecisionMode.FAST) -> PassResult:
    """
    Time of the next pass above a minimum elevation.

    Args:
        satellite: Satellite or OrbitalElements
        observer: Observer geometry
        jd: Start of the search (JD, UTC)
        min_elevation: Minimum elevation (radians)
        max_days: Search horizon (days)
        include_current: Return the start of the pass in progress at ``jd``
            instead of skipping it
        mode: Earth rotation precision used for the scan

    Returns:
        PassResult with the first minute the satellite is above
        ``min_elevation``, or PassResult.not_found()
    """
    validate_search(observer, min_elevation, max_days)
    sat = as_satellite(satellite)

    max_step = int(math.floor(max_days * MINUTES_PER_DAY))
    quick = quick_search_step(sat.elements, min_elevation)
    half_quick = max(1, quick // 2)
    quarter_quick = max(1, quick // 4)

    def sample(step):
        return sat.ephemeris_at(jd + step / MINUTES_PER_DAY, observer, mode)

    nstep = 0
    ephem = sample(nstep)

    # Leave the pass in progress
    if not include_current:
        while ephem.elevation > min_elevation and nstep < max_step:
            nstep += 1
            ephem = sample(nstep)
        if nstep >= max_step:
            return PassResult.not_found()

    while ephem.elevation < min_elevation and nstep < max_step:
        if ephem.elevation < FAR_BELOW_HORIZON:
            nstep += quick
        elif ephem.elevation < BELOW_HORIZON:
            nstep += half_quick
        else:
            nstep += quarter_quick
        ephem = sample(nstep)

    # Back up to the first minute above the threshold, at most one orbit
    lowest = -min(max_step, int(math.ceil(MINUTES_PER_DAY / sat.elements.mean_motion)))
    backtracked = False
    while ephem.elevation > min_elevation and lowest < nstep < max_step:
        nstep -= 1
        ephem = sample(nstep)
        backtracked = True
    if backtracked and ephem.elevation > min_elevation:
        # Above the threshold for a whole orbit: the pass is in progress
        ephem = sample(0)
        logger.debug(f"{sat.name} stays above the minimum elevation; pass in progress at JD {jd:.6f}")
        return PassResult.from_jd(jd, ephem.is_eclipsed)
    if backtracked:
        nstep += 1
        ephem = sample(nstep)

    if nstep >= max_step:
        return PassResult.not_found()
    pass_jd = jd + nstep / MINUTES_PER_DAY
    if pass_jd >= jd + max_days:
        return PassResult.not_found()

    logger.debug(f"Pass of {sat.name} found at JD {pass_jd:.6f} (eclipsed={ephem.is_eclipsed})")
    return PassResult.from_jd(pass_jd, ephem.is_eclipsed)


def _walk(sat, observer, jd, direction, horizon, max_iterations, mode):
    """Step one second at a time while above ``-horizon``.

    Returns the last instant above, the highest sample and whether the walk
    ended before the cap.
    """
    step = direction / SECONDS_PER_DAY
    best_jd, best_el = jd, -math.pi
    last_jd = jd
    ephem = sat.ephemeris_at(jd, observer, mode)
    iterations = 0
    while ephem.elevation > -horizon and iterations < max_iterations:
        if ephem.elevation > best_el:
            best_jd, best_el = ephem.jd, ephem.elevation
        last_jd = ephem.jd
        iterations += 1
        ephem = sat.ephemeris_at(jd + iterations * step, observer, mode)
    return last_jd, best_jd, best_el, iterations < max_iterations


def rise_set_transit(satellite, observer: ObserverGeometry,
                     start: Union[PassResult, float], horizon: float = DEFAULT_HORIZON,
                     max_iterations: int = RISE_SET_MAX_ITERATIONS,
                     mode: PrecisionMode = PrecisionMode.FAST) -> RiseSetTransit:
    """
    Rise, set and transit of the pass in progress at, or following, ``start``.

    Args:
        satellite: Satellite or OrbitalElements
        observer: Observer geometry
        start: A PassResult from next_pass, or a Julian day
        horizon: Refraction depression of the horizon (radians, default 34')
        max_iterations: Cap on the one-second steps of each walk
        mode: Earth rotation precision

    Returns:
        RiseSetTransit; fields of a walk that hit the cap are None
    """
    if observer is None:
        raise InvalidSearchParameterError("An observer is required for event searches")
    if max_iterations < 1:
        raise InvalidSearchParameterError(f"max_iterations must be positive, got {max_iterations}")
    sat = as_satellite(satellite)

    if isinstance(start, PassResult):
        if not start.found:
            return RiseSetTransit.empty()
        jd = start.jd
    else:
        jd = float(start)
        if sat.ephemeris_at(jd, observer, mode).elevation < 0.0:
            found = next_pass(sat, observer, jd, RISE_SET_MIN_ELEVATION,
                              RISE_SET_SEARCH_DAYS, include_current=True, mode=mode)
            if not found:
                return RiseSetTransit.empty()
            jd = found.jd

    rise, back_max_jd, back_max_el, rise_ok = _walk(sat, observer, jd, -1, horizon, max_iterations, mode)
    set_, fwd_max_jd, fwd_max_el, set_ok = _walk(sat, observer, jd, 1, horizon, max_iterations, mode)

    if back_max_el >= fwd_max_el:
        transit, transit_el = back_max_jd, back_max_el
    else:
        transit, transit_el = fwd_max_jd, fwd_max_el

    if not rise_ok:
        logger.warning(f"Rise of {sat.name} not reached within {max_iterations} s of JD {jd:.6f}")
        rise = None
    if not set_ok:
        logger.warning(f"Set of {sat.name} not reached within {max_iterations} s of JD {jd:.6f}")
        return RiseSetTransit(rise, None, None, 0.0, False)

    return RiseSetTransit(rise, set_, transit, transit_el, rise_ok)

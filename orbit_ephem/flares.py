"""
Flare Search

Iridium-type flares: the reflection of the Sun (or the Moon) in a main
mission antenna sweeping over the observer. A flare can only be seen while
the satellite is above the minimum elevation and not eclipsed, so each pass
returned by next_pass is scanned for glint angles under the threshold.

Each pass is first scanned coarsely at ``precision_seconds`` and, once a glint
is seen, refined at one second to find the start, the maximum (smallest
glint angle) and the end of the flare.
"""

import logging
import math
from enum import Enum
from typing import List, NamedTuple

from config import (
    FLARE_MAX_SCAN_SECONDS, FLARE_POST_PASS_ADVANCE_MINUTES,
    MAXIMUM_GLINT_ANGLE_FOR_FLARES, MAXIMUM_GLINT_ANGLE_FOR_LUNAR_FLARES,
    MINUTES_PER_DAY, SECONDS_PER_DAY,
)
from orbit_ephem.events import next_pass, validate_search
from orbit_ephem.exceptions import InvalidSearchParameterError
from orbit_ephem.satellite import as_satellite
from orbit_ephem.timekeeping import PrecisionMode
from orbit_ephem.topocentric import Ephemeris, ObserverGeometry

logger = logging.getLogger(__name__)


class IlluminatingBody(Enum):
    SUN = "sun"
    MOON = "moon"

    @property
    def threshold(self) -> float:
        """Largest glint angle (degrees) that counts as a flare."""
        if self is IlluminatingBody.SUN:
            return MAXIMUM_GLINT_ANGLE_FOR_FLARES
        return MAXIMUM_GLINT_ANGLE_FOR_LUNAR_FLARES

    def glint(self, ephem: Ephemeris) -> float:
        if self is IlluminatingBody.SUN:
            return ephem.glint_angle
        return ephem.lunar_glint_angle


class FlareWindow(NamedTuple):
    """One flare. Times are Julian days, the glint angle is in degrees."""

    start: float
    end: float
    maximum: float
    min_glint_angle: float
    body: IlluminatingBody
    start_ephemeris: Ephemeris
    end_ephemeris: Ephemeris
    max_ephemeris: Ephemeris

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start) * SECONDS_PER_DAY


def _scan_pass(sat, observer, pass_jd, min_elevation, precision_seconds, body):
    """
    Look for one flare in the pass starting at ``pass_jd``.

    Returns:
        (jd at which the scan stopped, FlareWindow or None)
    """
    threshold = body.threshold
    mode = PrecisionMode.FAST

    def sample(t):
        return sat.ephemeris_at(t, observer, mode)

    coarse = precision_seconds / SECONDS_PER_DAY
    second = 1.0 / SECONDS_PER_DAY
    max_coarse = int(FLARE_MAX_SCAN_SECONDS / precision_seconds)

    jd = pass_jd
    start = maximum = end = None
    min_glint = math.inf

    # The pass may rise inside a flare
    ephem = sample(jd)
    if body.glint(ephem) <= threshold:
        start = maximum = end = ephem
        min_glint = body.glint(ephem)

    # Coarse scan at the requested precision
    found = False
    above = False
    for _ in range(max_coarse):
        jd += coarse
        ephem = sample(jd)
        if ephem.elevation > min_elevation:
            above = True
        if above and body.glint(ephem) <= threshold:
            found = True
            break
        if ephem.elevation < min_elevation and above:
            break

    if found:
        # One second refinement from one coarse step back
        jd -= coarse
        above = False
        for _ in range(FLARE_MAX_SCAN_SECONDS):
            jd += second
            ephem = sample(jd)
            glint = body.glint(ephem)
            if ephem.elevation > min_elevation:
                above = True
            if start is None and glint <= threshold:
                if ephem.elevation < min_elevation or ephem.is_eclipsed:
                    break
                start = maximum = end = ephem
                min_glint = glint
            if start is not None:
                if glint > threshold:
                    end = ephem
                    break
                # Cut short by the horizon or the shadow: the flare ends at
                # the last visible sample
                if ephem.elevation < min_elevation or ephem.is_eclipsed:
                    break
                end = ephem
                if glint < min_glint:
                    maximum = ephem
                    min_glint = glint
            if ephem.elevation < min_elevation and above:
                start = None
                break

    if start is None or maximum.is_eclipsed:
        return jd, None

    window = FlareWindow(
        start=start.jd,
        end=end.jd,
        maximum=maximum.jd,
        min_glint_angle=min_glint,
        body=body,
        start_ephemeris=start,
        end_ephemeris=end,
        max_ephemeris=maximum,
    )
    return jd, window


def next_flares(satellite, observer: ObserverGeometry, jd: float, min_elevation: float,
                max_days: float, include_current: bool = False,
                precision_seconds: int = 5,
                body: IlluminatingBody = IlluminatingBody.SUN) -> List[FlareWindow]:
    """
    Flares seen by an observer within a time window.

    Args:
        satellite: Satellite or OrbitalElements of an Iridium-type satellite
        observer: Observer geometry
        jd: Start of the search (JD, UTC)
        min_elevation: Minimum satellite elevation (radians)
        max_days: Search horizon (days)
        include_current: Also scan the pass in progress at ``jd``
        precision_seconds: Coarse scan step, 1 to 10 seconds
        body: Sun or Moon

    Returns:
        Flares in time order; empty when none were found

    Raises:
        InvalidSearchParameterError: On an invalid precision, body or elevation
    """
    if not isinstance(body, IlluminatingBody):
        raise InvalidSearchParameterError(f"Unknown illuminating body {body!r}")
    if not 1 <= precision_seconds <= 10:
        raise InvalidSearchParameterError(
            f"Flare precision must be between 1 and 10 seconds, got {precision_seconds}"
        )
    validate_search(observer, min_elevation, max_days)
    sat = as_satellite(satellite)

    limit = jd + max_days
    advance = FLARE_POST_PASS_ADVANCE_MINUTES / MINUTES_PER_DAY
    flares: List[FlareWindow] = []

    current = include_current
    while jd < limit:
        result = next_pass(sat, observer, jd, min_elevation, limit - jd,
                           include_current=current, mode=PrecisionMode.FAST)
        if not result or result.jd >= limit:
            break
        current = False

        jd, window = _scan_pass(sat, observer, result.jd, min_elevation, precision_seconds, body)
        if window is not None:
            logger.debug(
                f"{body.value.capitalize()} flare of {sat.name} at JD {window.maximum:.6f}, "
                f"glint {window.min_glint_angle:.2f} deg"
            )
            flares.append(window)
        jd = max(jd, result.jd) + advance

    return flares


def next_solar_flares(satellite, observer: ObserverGeometry, jd: float, min_elevation: float,
                      max_days: float, include_current: bool = False,
                      precision_seconds: int = 5) -> List[FlareWindow]:
    return next_flares(satellite, observer, jd, min_elevation, max_days,
                       include_current, precision_seconds, IlluminatingBody.SUN)


def next_lunar_flares(satellite, observer: ObserverGeometry, jd: float, min_elevation: float,
                      max_days: float, include_current: bool = False,
                      precision_seconds: int = 5) -> List[FlareWindow]:
    return next_flares(satellite, observer, jd, min_elevation, max_days,
                       include_current, precision_seconds, IlluminatingBody.MOON)

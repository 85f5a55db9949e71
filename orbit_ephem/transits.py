"""
Transits of a satellite across the Sun or the Moon.

During each pass the satellite's topocentric direction is compared with the
Sun and the topocentric Moon every half second. Long stretches far from both
bodies are skipped.
"""

import logging
import math
from enum import Enum
from typing import List, NamedTuple

import numpy as np

from config import SECONDS_PER_DAY
from orbit_ephem.bodies import angular_separation, moon_position, sun_direction
from orbit_ephem.events import next_pass, validate_search
from orbit_ephem.satellite import as_satellite
from orbit_ephem.timekeeping import PrecisionMode, earth_rotation_angle
from orbit_ephem.topocentric import Ephemeris, ObserverGeometry, rotate_z

logger = logging.getLogger(__name__)

TRANSIT_STEP_SECONDS = 0.5
SKIP_DISTANCE = math.radians(5.0)
MAX_STEPS_PER_PASS = int(6 * 3600 / TRANSIT_STEP_SECONDS)


class TransitBody(Enum):
    SUN = "sun"
    MOON = "moon"


class TransitEvent(NamedTuple):
    """Satellite crossing the disk of the Sun or the Moon (JD, radians)."""

    body: TransitBody
    start: float
    end: float
    elevation: float
    eclipsed: bool


def _direction(ephem: Ephemeris) -> np.ndarray:
    cos_dec = math.cos(ephem.declination)
    return np.array([cos_dec * math.cos(ephem.right_ascension),
                     cos_dec * math.sin(ephem.right_ascension),
                     math.sin(ephem.declination)])


def _topocentric_moon(jd: float, observer: ObserverGeometry, mode: PrecisionMode) -> np.ndarray:
    moon = moon_position(jd)
    geocentric = moon.direction() * moon.distance * observer.equatorial_radius_km
    theta = earth_rotation_angle(jd, mode)
    return geocentric - rotate_z(observer.position, -theta)


def body_distances(ephem: Ephemeris, observer: ObserverGeometry,
                   mode: PrecisionMode = PrecisionMode.FAST):
    """Angular distances (radians) from the satellite to the Sun and the Moon."""
    sat = _direction(ephem)
    d_sun = angular_separation(sat, sun_direction(ephem.jd))
    d_moon = angular_separation(sat, _topocentric_moon(ephem.jd, observer, mode))
    return d_sun, d_moon


def next_sun_moon_transits(satellite, observer: ObserverGeometry, jd: float, max_days: float,
                           min_distance_deg: float = 0.25) -> List[TransitEvent]:
    """
    Transits across the Sun or the Moon within a time window.

    Args:
        satellite: Satellite or OrbitalElements
        observer: Observer geometry
        jd: Start of the search (JD, UTC)
        max_days: Search horizon (days)
        min_distance_deg: Angular distance below which the satellite is
            considered in front of the body (degrees)

    Returns:
        Transits in time order; empty when none were found
    """
    validate_search(observer, 0.0, max_days)
    sat = as_satellite(satellite)
    mode = PrecisionMode.FAST
    min_distance = math.radians(min_distance_deg)
    step = TRANSIT_STEP_SECONDS / SECONDS_PER_DAY

    limit = jd + max_days
    events: List[TransitEvent] = []
    current = True
    while jd < limit:
        result = next_pass(sat, observer, jd, 0.0, limit - jd, include_current=current, mode=mode)
        if not result or result.jd >= limit:
            break
        current = False

        pass_jd = result.jd
        open_events = {}
        nstep = 0
        ephem = sat.ephemeris_at(pass_jd, observer, mode)
        last = ephem
        while (ephem.elevation > 0.0 or nstep == 0) and nstep < MAX_STEPS_PER_PASS:
            d_sun, d_moon = body_distances(ephem, observer, mode)
            for body, distance in ((TransitBody.SUN, d_sun), (TransitBody.MOON, d_moon)):
                if distance < min_distance and body not in open_events:
                    open_events[body] = ephem
                elif distance >= min_distance and body in open_events:
                    start = open_events.pop(body)
                    events.append(TransitEvent(body, start.jd, last.jd, start.elevation, start.is_eclipsed))
                    logger.debug(f"{sat.name} transits the {body.value} at JD {start.jd:.6f}")

            nearest = min(d_sun, d_moon)
            if nearest > SKIP_DISTANCE and not open_events:
                nstep += int(math.degrees(nearest) / TRANSIT_STEP_SECONDS)
            else:
                nstep += 1
            last = ephem
            ephem = sat.ephemeris_at(pass_jd + nstep * step, observer, mode)

        # Transits still open when the satellite set are dropped
        if open_events:
            logger.debug(f"Dropping {len(open_events)} transit(s) of {sat.name} cut by the horizon")

        jd = max(last.jd, pass_jd) + step

    events.sort(key=lambda event: event.start)
    return events

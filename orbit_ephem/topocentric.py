"""
Topocentric Projection

Turns an inertial state vector into what an observer on the ellipsoid sees:
azimuth, elevation, range and range rate, the sub-satellite point, eclipse
status, antenna illumination, revolution number and the solar and lunar glint
angles.

Solar geometry and the nominal antenna attitude follow the PLAN13 amateur
satellite model.
"""

import logging
import math
from enum import Enum
from typing import NamedTuple

import numpy as np

from config import (
    GRAVITATIONAL_PARAMETER, TROPICAL_YEAR_DAYS, SECONDS_PER_DAY,
    WGS84_EQUATORIAL_RADIUS_KM, WGS84_INVERSE_FLATTENING,
    GLINT_ANGLE_NOT_APPLICABLE,
)
from orbit_ephem.bodies import SYNODIC_MONTH_DAYS, moon_position, sun_direction
from orbit_ephem.elements import OrbitalElements
from orbit_ephem.exceptions import InvalidSearchParameterError
from orbit_ephem.glint import glint_angle
from orbit_ephem.timekeeping import TWOPI, PrecisionMode, earth_rotation_angle, normalize_radians

logger = logging.getLogger(__name__)

# Earth rotation rate including the annual term, rad/s
EARTH_ROTATION_RATE = (TWOPI + TWOPI / TROPICAL_YEAR_DAYS) / SECONDS_PER_DAY

# Nominal antenna attitude in orbit-plane coordinates (PLAN13 ALON, ALAT)
ANTENNA_LONGITUDE = math.radians(180.0)
ANTENNA_LATITUDE = 0.0
ANTENNA_J2 = 0.00108263

# Sun elevation below which an unlit-sky observer may see the satellite
POSSIBLY_VISIBLE_SUN_ELEVATION = math.radians(-10.0)

# Lunar glints are ignored this close to new Moon (days of age)
LUNAR_GLINT_AGE_MARGIN = 3.0


class EclipseStatus(Enum):
    SUNLIT = "sunlit"
    POSSIBLY_VISIBLE = "possibly_visible"
    ECLIPSED = "eclipsed"


class ObserverGeometry(NamedTuple):
    """
    Observer on a reference ellipsoid.

    Latitude and longitude are geodetic, in radians (east positive). Height is
    above the ellipsoid in km.
    """

    latitude: float
    longitude: float
    height_km: float = 0.0
    equatorial_radius_km: float = WGS84_EQUATORIAL_RADIUS_KM
    inverse_flattening: float = WGS84_INVERSE_FLATTENING

    @classmethod
    def from_degrees(cls, latitude_deg: float, longitude_deg: float,
                     height_m: float = 0.0) -> "ObserverGeometry":
        observer = cls(math.radians(latitude_deg), math.radians(longitude_deg), height_m / 1000.0)
        observer.validate()
        return observer

    def validate(self) -> None:
        if not -math.pi / 2.0 <= self.latitude <= math.pi / 2.0:
            raise InvalidSearchParameterError(
                f"Observer latitude {math.degrees(self.latitude):.4f} deg outside [-90, 90]"
            )

    @property
    def polar_radius_km(self) -> float:
        return self.equatorial_radius_km * (1.0 - 1.0 / self.inverse_flattening)

    @property
    def rx(self) -> float:
        """Radius term scaling the equatorial components of the position (km)."""
        a = self.equatorial_radius_km
        b = self.polar_radius_km
        d = math.hypot(a * math.cos(self.latitude), b * math.sin(self.latitude))
        return a * a / d + self.height_km

    @property
    def rz(self) -> float:
        a = self.equatorial_radius_km
        b = self.polar_radius_km
        d = math.hypot(a * math.cos(self.latitude), b * math.sin(self.latitude))
        return b * b / d + self.height_km

    @property
    def up(self) -> np.ndarray:
        cos_lat = math.cos(self.latitude)
        return np.array([cos_lat * math.cos(self.longitude),
                         cos_lat * math.sin(self.longitude),
                         math.sin(self.latitude)])

    @property
    def east(self) -> np.ndarray:
        return np.array([-math.sin(self.longitude), math.cos(self.longitude), 0.0])

    @property
    def north(self) -> np.ndarray:
        sin_lat = math.sin(self.latitude)
        return np.array([-sin_lat * math.cos(self.longitude),
                         -sin_lat * math.sin(self.longitude),
                         math.cos(self.latitude)])

    @property
    def position(self) -> np.ndarray:
        """Earth-fixed observer position (km)."""
        up = self.up
        return np.array([self.rx * up[0], self.rx * up[1], self.rz * up[2]])


class Ephemeris(NamedTuple):
    """Observed state of a satellite at one instant. Angles in radians."""

    jd: float
    range_km: float
    range_rate_km_s: float
    azimuth: float
    elevation: float
    right_ascension: float
    declination: float
    sub_latitude: float
    sub_longitude: float
    sub_height_km: float
    illumination: float
    eclipse_status: EclipseStatus
    sun_elevation: float
    glint_angle: float  # degrees
    lunar_glint_angle: float  # degrees
    revolution_number: int
    position: np.ndarray  # Earth-fixed, km
    velocity: np.ndarray  # Earth-fixed axes, km/s

    @property
    def is_eclipsed(self) -> bool:
        return self.eclipse_status is EclipseStatus.ECLIPSED


def rotate_z(vector: np.ndarray, angle: float) -> np.ndarray:
    """Rotate a vector's components by ``-angle`` about z (inertial to rotating)."""
    c = math.cos(angle)
    s = -math.sin(angle)
    x, y, z = vector
    return np.array([x * c - y * s, x * s + y * c, z])


def revolution_number(elements: OrbitalElements, days_since_epoch: float) -> int:
    """Orbit number with the mean anomaly advanced under linear drag."""
    n = elements.mean_motion_rad_per_day
    drag = -2.0 * elements.ndot / (3.0 * elements.mean_motion)
    dt = drag * days_since_epoch / 2.0
    mean_anomaly = elements.mean_anomaly + n * days_since_epoch * (1.0 - 3.0 * dt)
    return int(elements.revolution_number + math.floor(mean_anomaly / TWOPI))


def antenna_illumination(elements: OrbitalElements, days_since_epoch: float,
                         sun: np.ndarray, equatorial_radius_km: float) -> float:
    """
    Fraction of the nominal antenna lit by the Sun.

    Node and perigee are precessed with the J2 rates and the linear drag
    factor before the antenna vector is rotated to celestial coordinates.
    """
    e = elements.eccentricity
    incl = elements.inclination
    n_rad_day = elements.mean_motion_rad_per_day

    drag = -2.0 * elements.ndot / (3.0 * elements.mean_motion)
    kdp = 1.0 - 7.0 * drag * days_since_epoch / 2.0

    n = elements.mean_motion_rad_per_sec
    a = (GRAVITATIONAL_PARAMETER / (n * n)) ** (1.0 / 3.0)
    b = a * math.sqrt(1.0 - e * e)
    cos_i = math.cos(incl)
    sin_i = math.sin(incl)
    pc = equatorial_radius_km * a / (b * b)
    pc = 1.5 * ANTENNA_J2 * pc * pc * n_rad_day
    node_rate = -pc * cos_i
    perigee_rate = pc * (5.0 * cos_i * cos_i - 1.0) / 2.0

    ap = elements.arg_perigee + perigee_rate * days_since_epoch * kdp
    raan = elements.raan + node_rate * days_since_epoch * kdp
    cw, sw = math.cos(ap), math.sin(ap)
    cr, sr = math.cos(raan), math.sin(raan)

    # [C] = [RAAN]·[IN]·[AP]
    cx = (cw * cr - sw * cos_i * sr, -sw * cr - cw * cos_i * sr, sin_i * sr)
    cy = (cw * sr + sw * cos_i * cr, -sw * sr + cw * cos_i * cr, -sin_i * cr)
    cz = (sw * sin_i, cw * sin_i, cos_i)

    cos_alat = math.cos(ANTENNA_LATITUDE)
    antenna = np.array([-cos_alat * math.cos(ANTENNA_LONGITUDE),
                        -cos_alat * math.sin(ANTENNA_LONGITUDE),
                        -math.sin(ANTENNA_LATITUDE)])
    ant = np.array([np.dot(antenna, cx), np.dot(antenna, cy), np.dot(antenna, cz)])

    ssa = -float(np.dot(ant, sun))
    return math.sqrt(max(0.0, 1.0 - ssa * ssa))


def classify_eclipse(satellite: np.ndarray, sun: np.ndarray, sun_elevation: float,
                     earth_radius_km: float) -> EclipseStatus:
    """Cylindrical-shadow eclipse test on the inertial satellite position."""
    rs = float(np.linalg.norm(satellite))
    cua = -float(np.dot(satellite, sun)) / rs
    umd = rs * math.sqrt(max(0.0, 1.0 - cua * cua)) / earth_radius_km
    if umd <= 1.0 and cua >= 0.0:
        return EclipseStatus.ECLIPSED
    if sun_elevation < POSSIBLY_VISIBLE_SUN_ELEVATION:
        return EclipseStatus.POSSIBLY_VISIBLE
    return EclipseStatus.SUNLIT


def _horizontal(vector: np.ndarray, observer: ObserverGeometry):
    """Azimuth in [0, 2π) and elevation of a unit vector."""
    u = float(np.dot(vector, observer.up))
    e = float(np.dot(vector, observer.east))
    n = float(np.dot(vector, observer.north))
    return normalize_radians(math.atan2(e, n)), math.asin(max(-1.0, min(1.0, u)))


def lunar_glint_angle(jd: float, position: np.ndarray, velocity: np.ndarray,
                      line_of_sight: np.ndarray, rotation: float) -> float:
    """Glint angle towards the illuminated lunar disk, or 100 near new Moon."""
    moon = moon_position(jd)
    if not LUNAR_GLINT_AGE_MARGIN < moon.age < SYNODIC_MONTH_DAYS - LUNAR_GLINT_AGE_MARGIN:
        return GLINT_ANGLE_NOT_APPLICABLE
    # Shift towards the centre of the lit part of the disk
    offset = math.radians(0.25) * (moon.age - SYNODIC_MONTH_DAYS * 0.5) / 15.0
    direction = rotate_z(moon.direction(offset), rotation)
    return glint_angle(position, velocity, line_of_sight, direction)


def project(state, elements: OrbitalElements, jd: float, observer: ObserverGeometry,
            mode: PrecisionMode = PrecisionMode.EXACT) -> Ephemeris:
    """
    Project an inertial state onto an observer's sky.

    Args:
        state: StateVector from a propagator (km, km/s)
        elements: Elements the state was propagated from
        jd: Julian day (UTC) of the state
        observer: Observer geometry
        mode: FAST for mean sidereal time, EXACT for apparent

    Returns:
        Ephemeris
    """
    observer.validate()
    theta = earth_rotation_angle(jd, mode)

    # Inertial to Earth-fixed
    sat = rotate_z(state.position, theta)
    vel = rotate_z(state.velocity, theta)

    obs = observer.position
    line_of_sight = sat - obs
    distance = float(np.linalg.norm(line_of_sight))
    rho = line_of_sight / distance
    azimuth, elevation = _horizontal(rho, observer)

    # Topocentric equatorial coordinates of date
    inertial_rho = rotate_z(rho, -theta)
    right_ascension = normalize_radians(math.atan2(inertial_rho[1], inertial_rho[0]))
    declination = math.asin(max(-1.0, min(1.0, float(inertial_rho[2]))))

    # Sub-satellite point
    rs = float(np.linalg.norm(sat))
    sub_longitude = math.atan2(sat[1], sat[0])
    sub_latitude = math.asin(sat[2] / rs)
    sub_height = rs - observer.equatorial_radius_km

    # Range rate against the rotating observer (VOz = 0)
    obs_velocity = np.array([-obs[1] * EARTH_ROTATION_RATE, obs[0] * EARTH_ROTATION_RATE, 0.0])
    range_rate = float(np.dot(vel - obs_velocity, rho))

    # Sun, eclipse and illumination
    days = jd - elements.epoch_jd
    sun = sun_direction(jd)
    sun_fixed = rotate_z(sun, theta)
    _, sun_elevation = _horizontal(sun_fixed, observer)
    eclipse = classify_eclipse(np.asarray(state.position), sun, sun_elevation,
                               observer.equatorial_radius_km)
    illumination = antenna_illumination(elements, days, sun, observer.equatorial_radius_km)

    solar_glint = glint_angle(sat, vel, line_of_sight, sun_fixed)
    lunar_glint = lunar_glint_angle(jd, sat, vel, line_of_sight, theta)

    return Ephemeris(
        jd=jd,
        range_km=distance,
        range_rate_km_s=range_rate,
        azimuth=azimuth,
        elevation=elevation,
        right_ascension=right_ascension,
        declination=declination,
        sub_latitude=sub_latitude,
        sub_longitude=sub_longitude,
        sub_height_km=sub_height,
        illumination=illumination,
        eclipse_status=eclipse,
        sun_elevation=sun_elevation,
        glint_angle=solar_glint,
        lunar_glint_angle=lunar_glint,
        revolution_number=revolution_number(elements, days),
        position=sat,
        velocity=vel,
    )

"""
Low-Precision Sun and Moon Models

Just enough solar and lunar geometry for eclipse, illumination and flare
computations. These are not general ephemerides: the Sun direction is good to
about 0.01 degrees and the Moon position to a few hundredths of a degree in
the decades around 2000.
"""

import math
from typing import NamedTuple

import numpy as np

from config import TROPICAL_YEAR_DAYS
from orbit_ephem.timekeeping import J2000_JD, TWOPI, normalize_radians

# Mean obliquity of the ecliptic used throughout
OBLIQUITY = math.radians(23.4393)

# PLAN13 solar constants, referred to 1999 Dec 31.0
SUN_EPOCH_JD = 2451543.5
SUN_MEAN_RA_EPOCH_DEG = 98.9821
SUN_MEAN_ANOMALY_EPOCH_DEG = 356.0507
SUN_MEAN_ANOMALY_RATE_DEG = 0.98560028
EQUATION_OF_CENTRE = (0.03342, 0.00035, 5.0e-6)

SYNODIC_MONTH_DAYS = 29.530588853


class MoonPosition(NamedTuple):
    """Geocentric ecliptic position of the Moon."""

    longitude: float  # rad
    latitude: float  # rad
    distance: float  # earth radii
    age: float  # days since new Moon

    def direction(self, longitude_offset: float = 0.0) -> np.ndarray:
        """Unit vector in equatorial coordinates of date."""
        return ecliptic_to_equatorial(self.longitude + longitude_offset, self.latitude)


def ecliptic_to_equatorial(longitude: float, latitude: float) -> np.ndarray:
    """Rotate an ecliptic direction to an equatorial unit vector."""
    cos_lat = math.cos(latitude)
    x = cos_lat * math.cos(longitude)
    y = cos_lat * math.sin(longitude)
    z = math.sin(latitude)
    c = math.cos(OBLIQUITY)
    s = math.sin(OBLIQUITY)
    return np.array([x, y * c - z * s, y * s + z * c])


def sun_direction(jd: float) -> np.ndarray:
    """
    Unit vector towards the Sun in celestial (equatorial) coordinates.

    Uses the PLAN13 model: mean right ascension advancing at one turn per
    tropical year plus a three-term equation of centre.

    Args:
        jd: Julian day (UTC)

    Returns:
        Unit 3-vector
    """
    d = jd - SUN_EPOCH_JD
    year_rate = TWOPI / TROPICAL_YEAR_DAYS

    mean_anomaly = normalize_radians(
        math.radians(SUN_MEAN_ANOMALY_EPOCH_DEG + SUN_MEAN_ANOMALY_RATE_DEG * d)
    )
    eqc1, eqc2, eqc3 = EQUATION_OF_CENTRE
    true_longitude = normalize_radians(
        math.radians(SUN_MEAN_RA_EPOCH_DEG) + d * year_rate + math.pi
        + eqc1 * math.sin(mean_anomaly)
        + eqc2 * math.sin(2.0 * mean_anomaly)
        + eqc3 * math.sin(3.0 * mean_anomaly)
    )

    c = math.cos(true_longitude)
    s = math.sin(true_longitude)
    return np.array([c, s * math.cos(OBLIQUITY), s * math.sin(OBLIQUITY)])


def moon_position(jd: float) -> MoonPosition:
    """
    Approximate geocentric position of the Moon.

    Series from "Calendrical Calculations" with the main evection, variation
    and annual-equation terms. Error below 0.01 degrees for a few centuries
    around 2000.

    Args:
        jd: Julian day (TT; UTC is close enough for this model)

    Returns:
        MoonPosition with ecliptic angles of date, distance and age
    """
    t = (jd - J2000_JD) / 36525.0
    t2 = t * t
    t3 = t2 * t
    t4 = t3 * t

    sanomaly = math.radians(
        (357.5291 + 35999.0503 * t - 0.0001559 * t2 - 4.8e-7 * t3) % 360.0
    )

    # Nutation in longitude, dominant terms
    m1 = math.radians((124.90 - 1934.134 * t + 0.002063 * t2) % 360.0)
    m2 = math.radians((201.11 + 72001.5377 * t + 0.00057 * t2) % 360.0)

    phase = normalize_radians(math.radians(
        297.8502042 + 445267.1115168 * t - 0.00163 * t2 + t3 / 538841.0 - t4 / 65194000.0
    ))
    age = SYNODIC_MONTH_DAYS * phase / TWOPI

    anomaly = math.radians(
        (134.9634114 + 477198.8676313 * t + 0.008997 * t2 + t3 / 69699.0 - t4 / 14712000.0) % 360.0
    )
    node = math.radians(
        (93.2720993 + 483202.0175273 * t - 0.0034029 * t2 - t3 / 3526000.0 + t4 / 863310000.0) % 360.0
    )
    e = 1.0 - (0.002495 + 7.52e-6 * (t + 1.0)) * (t + 1.0)

    sin = math.sin
    cos = math.cos

    lon = 218.31664563 + 481267.8811958 * t - 0.00146639 * t2 + t3 / 540135.03 - t4 / 65193770.4
    lon += (6.28875 * sin(anomaly) + 1.274018 * sin(2 * phase - anomaly) + 0.658309 * sin(2 * phase)
            + 0.213616 * sin(2 * anomaly) - e * 0.185596 * sin(sanomaly) - 0.114336 * sin(2 * node)
            + 0.058793 * sin(2 * phase - 2 * anomaly) + 0.057212 * e * sin(2 * phase - anomaly - sanomaly)
            + 0.05332 * sin(2 * phase + anomaly) + 0.045874 * e * sin(2 * phase - sanomaly)
            + 0.041024 * e * sin(anomaly - sanomaly) - 0.034718 * sin(phase)
            - e * 0.030465 * sin(sanomaly + anomaly) + 0.015326 * sin(2 * (phase - node))
            - 0.012528 * sin(2 * node + anomaly) - 0.01098 * sin(2 * node - anomaly)
            + 0.010674 * sin(4 * phase - anomaly) + 0.010034 * sin(3 * anomaly)
            + 0.008548 * sin(4 * phase - 2 * anomaly) - e * 0.00791 * sin(sanomaly - anomaly + 2 * phase)
            - e * 0.006783 * sin(2 * phase + sanomaly) + 0.005162 * sin(anomaly - phase)
            + e * 0.005 * sin(sanomaly + phase) + 0.003862 * sin(4 * phase)
            + e * 0.004049 * sin(anomaly - sanomaly + 2 * phase) + 0.003996 * sin(2 * (anomaly + phase))
            + 0.003665 * sin(2 * phase - 3 * anomaly))
    lon += -0.0047785 * sin(m1) - 0.0003667 * sin(m2)

    parallax = (0.950724 + 0.051818 * cos(anomaly) + 0.009531 * cos(2 * phase - anomaly)
                + 0.007843 * cos(2 * phase) + 0.002824 * cos(2 * anomaly)
                + 0.000857 * cos(2 * phase + anomaly) + e * 0.000533 * cos(2 * phase - sanomaly)
                + e * 0.000401 * cos(2 * phase - anomaly - sanomaly)
                + e * 0.00032 * cos(anomaly - sanomaly) - 0.000271 * cos(phase)
                - e * 0.000264 * cos(sanomaly + anomaly) - 0.000198 * cos(2 * node - anomaly))

    lat = (5.128189 * sin(node) + 0.280606 * sin(node + anomaly) + 0.277693 * sin(anomaly - node)
           + 0.173238 * sin(2 * phase - node) + 0.055413 * sin(2 * phase + node - anomaly)
           + 0.046272 * sin(2 * phase - node - anomaly) + 0.032573 * sin(2 * phase + node)
           + 0.017198 * sin(2 * anomaly + node) + 0.009267 * sin(2 * phase + anomaly - node)
           + 0.008823 * sin(2 * anomaly - node) + e * 0.008247 * sin(2 * phase - sanomaly - node)
           + 0.004323 * sin(2 * (phase - anomaly) - node) + 0.0042 * sin(2 * phase + node + anomaly)
           + e * 0.003372 * sin(node - sanomaly - 2 * phase))

    return MoonPosition(
        longitude=normalize_radians(math.radians(lon)),
        latitude=math.radians(lat),
        distance=1.0 / math.sin(math.radians(parallax)),
        age=age,
    )


def angular_separation(a: np.ndarray, b: np.ndarray) -> float:
    """Angle between two vectors in radians."""
    na = np.linalg.norm(a)
    nb = np.linalg.norm(b)
    cos_angle = float(np.dot(a, b) / (na * nb))
    return math.acos(max(-1.0, min(1.0, cos_angle)))

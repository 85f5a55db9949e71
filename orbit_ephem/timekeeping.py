"""
Time Keeping Utilities

Julian day conversions and Greenwich sidereal time for the topocentric
reduction. All instants are Julian days in UTC, which is used in place of UT1
(the difference is below one second and well inside the accuracy of the
propagation models).
"""

import math
from datetime import datetime, timezone, timedelta
from enum import Enum
from typing import Tuple

TWOPI = 2.0 * math.pi
J2000_JD = 2451545.0
UNIX_EPOCH_JD = 2440587.5
SECONDS_PER_DAY = 86400.0


class PrecisionMode(Enum):
    """
    Accuracy of the Earth-rotation angle used by the topocentric reduction.

    FAST uses Greenwich mean sidereal time. EXACT adds the equation of the
    equinoxes to obtain apparent sidereal time.
    """

    FAST = "fast"
    EXACT = "exact"

    @classmethod
    def parse(cls, value) -> "PrecisionMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown precision mode {value!r}, expected 'fast' or 'exact'")


def normalize_radians(angle: float) -> float:
    """Reduce an angle to [0, 2π)."""
    angle = math.fmod(angle, TWOPI)
    if angle < 0.0:
        angle += TWOPI
    return angle


def datetime_to_jd(dt: datetime) -> float:
    """
    Convert a datetime to a Julian day.

    Naive datetimes are taken as UTC.

    Args:
        dt: Datetime object

    Returns:
        Julian day (UTC)
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)

    year, month, day = dt.year, dt.month, dt.day
    if month <= 2:
        year -= 1
        month += 12

    a = int(year / 100)
    b = 2 - a + int(a / 4)

    jd = int(365.25 * (year + 4716)) + int(30.6001 * (month + 1)) + day + b - 1524.5
    fr = (dt.hour + dt.minute / 60.0 + (dt.second + dt.microsecond / 1e6) / 3600.0) / 24.0

    return jd + fr


def jd_to_datetime(jd: float) -> datetime:
    """Convert a Julian day to a timezone-aware UTC datetime."""
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(
        seconds=(jd - UNIX_EPOCH_JD) * SECONDS_PER_DAY
    )


def tle_epoch_to_jd(epoch_year: int, epoch_days: float) -> float:
    """
    Convert a TLE epoch to a Julian day.

    Args:
        epoch_year: Two or four digit year (two digit years pivot at 57)
        epoch_days: Day of year with fractional part, 1.0 is Jan 1 0h

    Returns:
        Julian day (UTC)
    """
    if epoch_year < 100:
        epoch_year = 1900 + epoch_year if epoch_year >= 57 else 2000 + epoch_year
    return datetime_to_jd(datetime(epoch_year, 1, 1)) + epoch_days - 1.0


def split_jd(jd: float) -> Tuple[float, float]:
    """Split a Julian day into a midnight-aligned day and a fraction."""
    day = math.floor(jd - 0.5) + 0.5
    return day, jd - day


def greenwich_mean_sidereal_time(jd: float) -> float:
    """
    Greenwich mean sidereal time (IAU 1982), radians in [0, 2π).

    Args:
        jd: Julian day (UT1)
    """
    day, fr = split_jd(jd)
    T = (day - J2000_JD + fr) / 36525.0

    gmst_sec = (
        67310.54841 +
        (876600.0 * 3600.0 + 8640184.812866) * T +
        0.093104 * T * T -
        6.2e-6 * T * T * T
    )

    return (gmst_sec % SECONDS_PER_DAY) * (TWOPI / SECONDS_PER_DAY)


def equation_of_equinoxes(jd: float) -> float:
    """Equation of the equinoxes from the dominant nutation term, radians."""
    T = (jd - J2000_JD) / 36525.0
    omega = 125.04452 - 1934.136261 * T
    # 17.20 arcsec amplitude of the nutation in longitude
    delta_psi = math.radians(-17.20 / 3600.0) * math.sin(math.radians(omega))
    return delta_psi * math.cos(math.radians(23.4393))


def earth_rotation_angle(jd: float, mode: PrecisionMode = PrecisionMode.EXACT) -> float:
    """
    Greenwich hour angle of the equinox used to rotate inertial states.

    Args:
        jd: Julian day (UTC)
        mode: FAST for mean sidereal time, EXACT for apparent sidereal time

    Returns:
        Angle in radians
    """
    angle = greenwich_mean_sidereal_time(jd)
    if mode is PrecisionMode.EXACT:
        angle += equation_of_equinoxes(jd)
    return angle

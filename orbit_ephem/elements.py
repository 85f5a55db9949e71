"""
Orbital Elements and TLE Parsing

Provides the immutable mean-element set consumed by the propagation models and
a parser for Two-Line Element (TLE) sets built on top of the sgp4 library's
field decoding.
"""

import logging
import math
from typing import NamedTuple, Tuple

from sgp4.api import Satrec

from orbit_ephem.exceptions import InvalidElementsError, TLEFormatError
from orbit_ephem.timekeeping import jd_to_datetime, tle_epoch_to_jd

logger = logging.getLogger(__name__)

TWOPI = 2.0 * math.pi
XPDOTP = 1440.0 / TWOPI  # rev/day to rad/min
SECONDS_PER_DAY = 86400.0


class OrbitalElements(NamedTuple):
    """
    Mean orbital elements of one satellite at one epoch.

    Angles are radians. ``ndot`` and ``nddot`` are the values as printed in a
    TLE, i.e. half the first and one sixth of the second derivative of the
    mean motion, in rev/day² and rev/day³.
    """

    epoch_jd: float
    mean_motion: float  # rev/day
    eccentricity: float
    inclination: float
    raan: float
    arg_perigee: float
    mean_anomaly: float
    bstar: float = 0.0
    ndot: float = 0.0
    nddot: float = 0.0
    revolution_number: int = 0
    satnum: int = 0
    name: str = ""

    @classmethod
    def from_tle(cls, line1: str, line2: str, name: str = "") -> "OrbitalElements":
        return parse_tle(line1, line2, name)

    @classmethod
    def from_text(cls, text: str) -> "OrbitalElements":
        """Parse a 2 or 3 line TLE block."""
        return parse_tle_text(text)

    @property
    def mean_motion_rad_per_day(self) -> float:
        return self.mean_motion * TWOPI

    @property
    def mean_motion_rad_per_min(self) -> float:
        return self.mean_motion / XPDOTP

    @property
    def mean_motion_rad_per_sec(self) -> float:
        return self.mean_motion * TWOPI / SECONDS_PER_DAY

    @property
    def period_minutes(self) -> float:
        """Orbital period implied by the (unrecovered) mean motion."""
        return 1440.0 / self.mean_motion

    @property
    def epoch_datetime(self):
        return jd_to_datetime(self.epoch_jd)

    def validate(self) -> None:
        """
        Check that the elements are inside the domain of the models.

        Raises:
            InvalidElementsError: If eccentricity or mean motion are invalid
        """
        if not 0.0 <= self.eccentricity < 1.0:
            raise InvalidElementsError(
                f"Eccentricity {self.eccentricity} outside valid range [0, 1) "
                f"for satellite {self.satnum}"
            )
        if self.mean_motion <= 0.0:
            raise InvalidElementsError(
                f"Mean motion {self.mean_motion} rev/day must be positive "
                f"for satellite {self.satnum}"
            )


def tle_checksum(line: str) -> int:
    """Calculate the modulo-10 TLE checksum of the first 68 columns."""
    checksum = 0
    for char in line[:68]:
        if char.isdigit():
            checksum += int(char)
        elif char == "-":
            checksum += 1
    return checksum % 10


def _check_line(line: str, number: int, verify_checksum: bool) -> str:
    line = line.rstrip()
    if len(line) < 69:
        raise TLEFormatError(f"TLE line {number} has {len(line)} columns, expected 69: {line!r}")
    if line[0] != str(number):
        raise TLEFormatError(f"TLE line {number} must start with '{number}': {line!r}")
    if verify_checksum:
        expected = tle_checksum(line)
        if not line[68].isdigit() or int(line[68]) != expected:
            raise TLEFormatError(
                f"TLE line {number} checksum mismatch: found {line[68]!r}, computed {expected}"
            )
    return line


def split_tle_text(text: str) -> Tuple[str, str, str]:
    """
    Split a 2 or 3 line TLE block into (name, line1, line2).

    Args:
        text: TLE text, optionally preceded by a name line

    Returns:
        Tuple of (name, line1, line2); name is "" for bare two-line sets
    """
    lines = [line.rstrip() for line in text.strip().splitlines() if line.strip()]
    if len(lines) == 2:
        return "", lines[0], lines[1]
    if len(lines) == 3:
        name = lines[0][2:] if lines[0].startswith("0 ") else lines[0]
        return name.strip(), lines[1], lines[2]
    raise TLEFormatError(f"Expected 2 or 3 TLE lines, got {len(lines)}")


def parse_tle(line1: str, line2: str, name: str = "", verify_checksum: bool = True) -> OrbitalElements:
    """
    Parse TLE lines into orbital elements.

    Args:
        line1: First line of TLE
        line2: Second line of TLE
        name: Optional satellite name
        verify_checksum: Reject lines whose checksum digit does not match

    Returns:
        OrbitalElements in the units documented on the class

    Raises:
        TLEFormatError: If the lines are malformed
        InvalidElementsError: If the decoded elements are unphysical
    """
    line1 = _check_line(line1, 1, verify_checksum)
    line2 = _check_line(line2, 2, verify_checksum)
    if line1[2:7] != line2[2:7]:
        raise TLEFormatError(
            f"Satellite numbers differ between lines: {line1[2:7]!r} and {line2[2:7]!r}"
        )

    # Field decoding by the sgp4 library
    try:
        satellite = Satrec.twoline2rv(line1, line2)
    except (ValueError, IndexError) as e:
        raise TLEFormatError(f"Could not decode TLE: {e}") from e

    # Epoch from its own columns: two digit year and fractional day of year
    try:
        epoch_jd = tle_epoch_to_jd(int(line1[18:20]), float(line1[20:32]))
    except ValueError as e:
        raise TLEFormatError(f"Could not decode TLE epoch {line1[18:32]!r}: {e}") from e

    try:
        revolution_number = int(line2[63:68])
    except ValueError:
        revolution_number = int(getattr(satellite, "revnum", 0))

    elements = OrbitalElements(
        epoch_jd=epoch_jd,
        mean_motion=satellite.no_kozai * XPDOTP,
        eccentricity=satellite.ecco,
        inclination=satellite.inclo,
        raan=satellite.nodeo,
        arg_perigee=satellite.argpo,
        mean_anomaly=satellite.mo,
        bstar=satellite.bstar,
        # Satrec stores the derivatives in rad/min² and rad/min³
        ndot=satellite.ndot * XPDOTP * 1440.0,
        nddot=satellite.nddot * XPDOTP * 1440.0 * 1440.0,
        revolution_number=revolution_number,
        satnum=int(satellite.satnum),
        name=name.strip(),
    )
    elements.validate()

    logger.debug(
        f"Parsed TLE for {elements.satnum} ({elements.name or 'unnamed'}): "
        f"n={elements.mean_motion:.8f} rev/day, e={elements.eccentricity:.7f}"
    )
    return elements


def parse_tle_text(text: str, verify_checksum: bool = True) -> OrbitalElements:
    """
    Parse a TLE block as published, with or without its name line.

    Args:
        text: Two or three line TLE text
        verify_checksum: Reject lines whose checksum digit does not match

    Returns:
        OrbitalElements named after the name line, if any
    """
    name, line1, line2 = split_tle_text(text)
    return parse_tle(line1, line2, name, verify_checksum)

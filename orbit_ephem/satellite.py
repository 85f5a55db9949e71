"""
Satellite Facade

Binds one element set to its preprocessed state and propagator so that event
searches can evaluate thousands of instants without repeating the setup.
"""

import logging
from typing import Optional

from config import MINUTES_PER_DAY, config
from orbit_ephem.deep_space import DeepSpaceCorrection
from orbit_ephem.elements import OrbitalElements, parse_tle
from orbit_ephem.preprocessor import preprocess
from orbit_ephem.propagator import StateVector, create_propagator
from orbit_ephem.timekeeping import PrecisionMode
from orbit_ephem.topocentric import Ephemeris, ObserverGeometry, project

logger = logging.getLogger(__name__)


class Satellite:
    """
    Propagation and observation of one satellite.

    The propagation model (near-earth or deep-space) is chosen once, when the
    object is created.
    """

    def __init__(self, elements: OrbitalElements,
                 deep_space: Optional[DeepSpaceCorrection] = None):
        self.elements = elements
        self.state = preprocess(elements, deep_space)
        self.propagator = create_propagator(self.state)
        self._stale_warned = False

    @classmethod
    def from_tle(cls, line1: str, line2: str, name: str = "") -> "Satellite":
        return cls(parse_tle(line1, line2, name))

    @property
    def name(self) -> str:
        return self.elements.name or str(self.elements.satnum)

    @property
    def is_deep_space(self) -> bool:
        return self.state.is_deep_space

    def __repr__(self):
        model = "SDP8" if self.is_deep_space else "SGP8"
        return f"Satellite({self.name!r}, {model}, epoch_jd={self.elements.epoch_jd:.6f})"

    def tsince(self, jd: float) -> float:
        """Minutes from the element epoch to ``jd``."""
        return (jd - self.elements.epoch_jd) * MINUTES_PER_DAY

    def state_at(self, tsince: float) -> StateVector:
        return self.propagator.state_at(tsince)

    def state_at_jd(self, jd: float) -> StateVector:
        return self.propagator.state_at(self.tsince(jd))

    def ephemeris_at(self, jd: float, observer: ObserverGeometry,
                     mode: Optional[PrecisionMode] = None) -> Ephemeris:
        """
        Observed ephemeris at a Julian day.

        Args:
            jd: Julian day (UTC)
            observer: Observer geometry
            mode: Earth rotation precision; defaults to the
                ORBIT_EPHEM_PRECISION_MODE setting

        Returns:
            Ephemeris
        """
        mode = PrecisionMode.parse(mode or config.PRECISION_MODE)
        self._check_age(jd)
        return project(self.state_at_jd(jd), self.elements, jd, observer, mode)

    def _check_age(self, jd: float) -> None:
        if self._stale_warned:
            return
        age = abs(jd - self.elements.epoch_jd)
        if age > config.STALE_TLE_DAYS:
            logger.warning(
                f"Elements of {self.name} are {age:.1f} days from the requested time; "
                f"accuracy degrades beyond {config.STALE_TLE_DAYS:.0f} days"
            )
            self._stale_warned = True


def as_satellite(target) -> Satellite:
    """Accept a Satellite or bare OrbitalElements."""
    if isinstance(target, Satellite):
        return target
    if isinstance(target, OrbitalElements):
        return Satellite(target)
    raise TypeError(f"Expected Satellite or OrbitalElements, got {type(target).__name__}")

"""
Unit Tests for the Topocentric Projection

Run with:
    python -m pytest tests/test_topocentric.py -v
"""

import math
import unittest

import numpy as np

from config import SECONDS_PER_DAY
from orbit_ephem import ephemeris_at
from orbit_ephem.elements import parse_tle
from orbit_ephem.exceptions import InvalidSearchParameterError
from orbit_ephem.satellite import Satellite
from orbit_ephem.timekeeping import PrecisionMode
from orbit_ephem.topocentric import (
    EclipseStatus, ObserverGeometry, classify_eclipse, revolution_number, rotate_z,
)
from tle_fixtures import ISS_LINE1, ISS_LINE2


class TestObserverGeometry(unittest.TestCase):

    def test_equator_position(self):
        observer = ObserverGeometry.from_degrees(0.0, 0.0)
        np.testing.assert_allclose(observer.position, [6378.137, 0.0, 0.0], atol=1e-6)

    def test_pole_position(self):
        observer = ObserverGeometry.from_degrees(90.0, 0.0)
        self.assertAlmostEqual(observer.position[2], observer.polar_radius_km, places=6)
        self.assertAlmostEqual(observer.polar_radius_km, 6356.752, places=3)

    def test_height(self):
        low = ObserverGeometry.from_degrees(40.0, -75.0)
        high = ObserverGeometry.from_degrees(40.0, -75.0, height_m=1000.0)
        self.assertAlmostEqual(
            np.linalg.norm(high.position) - np.linalg.norm(low.position), 1.0, places=2
        )

    def test_local_axes_are_orthonormal(self):
        observer = ObserverGeometry.from_degrees(52.0, 13.4)
        axes = np.array([observer.up, observer.east, observer.north])
        np.testing.assert_allclose(axes @ axes.T, np.eye(3), atol=1e-12)

    def test_invalid_latitude(self):
        with self.assertRaises(InvalidSearchParameterError):
            ObserverGeometry.from_degrees(95.0, 0.0)


class TestEphemeris(unittest.TestCase):
    """Projection of the ISS for an observer in the eastern United States."""

    def setUp(self):
        """Set up test fixtures."""
        self.satellite = Satellite(parse_tle(ISS_LINE1, ISS_LINE2, "ISS"))
        self.observer = ObserverGeometry.from_degrees(40.0, -75.0, 50.0)
        self.jd = self.satellite.elements.epoch_jd + 0.1

    def test_ranges(self):
        ephem = self.satellite.ephemeris_at(self.jd, self.observer)
        self.assertGreaterEqual(ephem.azimuth, 0.0)
        self.assertLess(ephem.azimuth, 2.0 * math.pi)
        self.assertLessEqual(abs(ephem.elevation), math.pi / 2.0)
        self.assertGreater(ephem.range_km, 300.0)
        self.assertLess(ephem.range_km, 13500.0)
        self.assertGreater(ephem.sub_height_km, 350.0)
        self.assertLess(ephem.sub_height_km, 460.0)
        self.assertLessEqual(abs(ephem.sub_latitude), math.radians(52.0))
        self.assertGreaterEqual(ephem.illumination, 0.0)
        self.assertLessEqual(ephem.illumination, 1.0)
        self.assertIsInstance(ephem.eclipse_status, EclipseStatus)
        self.assertEqual(ephem.jd, self.jd)

    def test_range_rate_matches_range_derivative(self):
        dt = 1.0 / SECONDS_PER_DAY
        before = self.satellite.ephemeris_at(self.jd - dt, self.observer)
        after = self.satellite.ephemeris_at(self.jd + dt, self.observer)
        now = self.satellite.ephemeris_at(self.jd, self.observer)
        numeric = (after.range_km - before.range_km) / 2.0
        self.assertAlmostEqual(now.range_rate_km_s, numeric, delta=0.02)

    def test_observer_below_satellite_sees_zenith(self):
        ephem = self.satellite.ephemeris_at(self.jd, self.observer)
        below = ObserverGeometry(ephem.sub_latitude, ephem.sub_longitude)
        overhead = self.satellite.ephemeris_at(self.jd, below)
        self.assertGreater(overhead.elevation, math.radians(85.0))
        self.assertAlmostEqual(overhead.range_km, ephem.sub_height_km, delta=30.0)

    def test_precision_modes_agree_closely(self):
        fast = self.satellite.ephemeris_at(self.jd, self.observer, PrecisionMode.FAST)
        exact = self.satellite.ephemeris_at(self.jd, self.observer, PrecisionMode.EXACT)
        self.assertAlmostEqual(fast.elevation, exact.elevation, delta=1e-3)
        self.assertNotEqual(fast.sub_longitude, exact.sub_longitude)

    def test_module_level_ephemeris(self):
        one_shot = ephemeris_at(self.satellite.elements, self.jd, self.observer, PrecisionMode.EXACT)
        cached = self.satellite.ephemeris_at(self.jd, self.observer, PrecisionMode.EXACT)
        self.assertEqual(one_shot.elevation, cached.elevation)

    def test_revolution_number_grows(self):
        el = self.satellite.elements
        self.assertEqual(revolution_number(el, 0.0), el.revolution_number)
        # 15.5 revolutions per day
        self.assertIn(revolution_number(el, 1.0) - revolution_number(el, 0.0), (15, 16))
        self.assertEqual(revolution_number(el, 2.0) - revolution_number(el, 0.0), 31)

    def test_stale_elements_warn_once(self):
        with self.assertLogs("orbit_ephem.satellite", level="WARNING") as logs:
            self.satellite.ephemeris_at(self.jd + 60.0, self.observer)
            self.satellite.ephemeris_at(self.jd + 61.0, self.observer)
        self.assertEqual(len(logs.records), 1)


class TestGeometryHelpers(unittest.TestCase):

    def test_rotate_z_inverse(self):
        v = np.array([1.0, 2.0, 3.0])
        np.testing.assert_allclose(rotate_z(rotate_z(v, 0.7), -0.7), v, atol=1e-12)

    def test_rotate_z_direction(self):
        """Inertial x axis seen from a frame turned by 90 degrees."""
        np.testing.assert_allclose(rotate_z(np.array([1.0, 0.0, 0.0]), math.pi / 2.0),
                                   [0.0, -1.0, 0.0], atol=1e-12)

    def test_classify_eclipse(self):
        sun = np.array([1.0, 0.0, 0.0])
        shadow = np.array([-7000.0, 0.0, 0.0])
        lit = np.array([7000.0, 0.0, 0.0])
        self.assertIs(classify_eclipse(shadow, sun, 0.0, 6378.137), EclipseStatus.ECLIPSED)
        self.assertIs(classify_eclipse(lit, sun, 0.0, 6378.137), EclipseStatus.SUNLIT)
        self.assertIs(classify_eclipse(lit, sun, math.radians(-20.0), 6378.137),
                      EclipseStatus.POSSIBLY_VISIBLE)
        # Beside the shadow cylinder
        beside = np.array([-7000.0, 7000.0, 0.0])
        self.assertIs(classify_eclipse(beside, sun, 0.0, 6378.137), EclipseStatus.SUNLIT)


if __name__ == "__main__":
    unittest.main()

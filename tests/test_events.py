"""
Unit Tests for Pass Search and Rise/Set/Transit

Run with:
    python -m pytest tests/test_events.py -v
"""

import math
import unittest

from orbit_ephem.elements import parse_tle
from orbit_ephem.events import (
    DEFAULT_HORIZON, PassResult, RiseSetTransit, next_pass, quick_search_step, rise_set_transit,
)
from orbit_ephem.exceptions import InvalidSearchParameterError
from orbit_ephem.satellite import Satellite
from orbit_ephem.timekeeping import PrecisionMode
from orbit_ephem.topocentric import ObserverGeometry
from tle_fixtures import (
    EQUATORIAL_LINE1, EQUATORIAL_LINE2, GEO_LINE1, GEO_LINE2, ISS_LINE1, ISS_LINE2,
)


class TestPassResult(unittest.TestCase):

    def test_not_found(self):
        result = PassResult.not_found()
        self.assertFalse(result)
        self.assertFalse(result.found)
        self.assertEqual(result.signed_jd, 0.0)

    def test_found(self):
        result = PassResult.from_jd(2460204.5, eclipsed=True)
        self.assertTrue(result)
        self.assertEqual(result.signed_jd, -2460204.5)
        self.assertEqual(PassResult.from_jd(2460204.5, False).signed_jd, 2460204.5)


class TestQuickSearchStep(unittest.TestCase):

    def test_leo_step(self):
        step = quick_search_step(parse_tle(ISS_LINE1, ISS_LINE2), math.radians(10.0))
        self.assertGreaterEqual(step, 1)
        self.assertLessEqual(step, 8)

    def test_high_orbit_is_clamped(self):
        self.assertEqual(quick_search_step(parse_tle(GEO_LINE1, GEO_LINE2), 0.0), 8)

    def test_higher_threshold_shortens_step(self):
        el = parse_tle(ISS_LINE1, ISS_LINE2)
        self.assertLessEqual(quick_search_step(el, math.radians(40.0)),
                             quick_search_step(el, math.radians(5.0)))


class TestNextPass(unittest.TestCase):
    """ISS passes for an observer at 40N 75W."""

    def setUp(self):
        """Set up test fixtures."""
        self.satellite = Satellite(parse_tle(ISS_LINE1, ISS_LINE2, "ISS"))
        self.observer = ObserverGeometry.from_degrees(40.0, -75.0)
        self.t0 = self.satellite.elements.epoch_jd
        self.min_elevation = math.radians(10.0)

    def test_pass_within_window(self):
        result = next_pass(self.satellite, self.observer, self.t0, self.min_elevation, 7.0)
        self.assertTrue(result.found)
        self.assertGreater(result.jd, self.t0)
        self.assertLess(result.jd, self.t0 + 7.0)
        ephem = self.satellite.ephemeris_at(result.jd, self.observer, PrecisionMode.FAST)
        self.assertGreaterEqual(ephem.elevation, self.min_elevation - 1e-6)
        self.assertEqual(result.eclipsed, ephem.is_eclipsed)

    def test_pass_starts_at_rise(self):
        """One minute earlier the satellite is still below the threshold."""
        result = next_pass(self.satellite, self.observer, self.t0, self.min_elevation, 7.0)
        before = self.satellite.ephemeris_at(result.jd - 1.0 / 1440.0, self.observer, PrecisionMode.FAST)
        self.assertLessEqual(before.elevation, self.min_elevation)

    def test_successive_passes_advance(self):
        first = next_pass(self.satellite, self.observer, self.t0, self.min_elevation, 7.0)
        second = next_pass(self.satellite, self.observer, first.jd, self.min_elevation, 7.0)
        self.assertTrue(second.found)
        self.assertGreater(second.jd, first.jd)

    def test_include_current_returns_pass_in_progress(self):
        first = next_pass(self.satellite, self.observer, self.t0, self.min_elevation, 7.0)
        current = next_pass(self.satellite, self.observer, first.jd, self.min_elevation, 7.0,
                            include_current=True)
        skipped = next_pass(self.satellite, self.observer, first.jd, self.min_elevation, 7.0)
        self.assertAlmostEqual(current.jd, first.jd, delta=1e-6)
        self.assertGreater(skipped.jd, first.jd + 30.0 / 1440.0)

    def test_accepts_bare_elements(self):
        result = next_pass(self.satellite.elements, self.observer, self.t0, self.min_elevation, 2.0)
        reference = next_pass(self.satellite, self.observer, self.t0, self.min_elevation, 2.0)
        self.assertEqual(result, reference)

    def test_never_visible(self):
        """An equatorial orbit never rises for an observer at 60N."""
        satellite = Satellite(parse_tle(EQUATORIAL_LINE1, EQUATORIAL_LINE2))
        observer = ObserverGeometry.from_degrees(60.0, 10.0)
        result = next_pass(satellite, observer, satellite.elements.epoch_jd, 0.0, 2.0)
        self.assertFalse(result.found)
        self.assertEqual(result, PassResult.not_found())

    def test_invalid_parameters(self):
        with self.assertRaises(InvalidSearchParameterError):
            next_pass(self.satellite, None, self.t0, self.min_elevation, 1.0)
        with self.assertRaises(InvalidSearchParameterError):
            next_pass(self.satellite, self.observer, self.t0, -0.1, 1.0)
        with self.assertRaises(InvalidSearchParameterError):
            next_pass(self.satellite, self.observer, self.t0, math.pi / 2.0, 1.0)
        with self.assertRaises(InvalidSearchParameterError):
            next_pass(self.satellite, self.observer, self.t0, self.min_elevation, 0.0)
        with self.assertRaises(TypeError):
            next_pass("ISS", self.observer, self.t0, self.min_elevation, 1.0)


class TestStationaryPass(unittest.TestCase):
    """A geostationary satellite high above an observer on the equator."""

    def setUp(self):
        """Set up test fixtures."""
        self.satellite = Satellite(parse_tle(GEO_LINE1, GEO_LINE2, "GEO"))
        self.observer = ObserverGeometry.from_degrees(0.0, 10.0)
        self.t0 = self.satellite.elements.epoch_jd
        self.min_elevation = math.radians(10.0)

    def test_visible_at_start(self):
        ephem = self.satellite.ephemeris_at(self.t0, self.observer, PrecisionMode.FAST)
        self.assertGreater(ephem.elevation, math.radians(60.0))

    def test_include_current_returns_start(self):
        """A pass that never ends is in progress at the start of the search."""
        result = next_pass(self.satellite, self.observer, self.t0, self.min_elevation, 2.0,
                           include_current=True)
        self.assertTrue(result.found)
        self.assertEqual(result.jd, self.t0)

    def test_no_new_pass(self):
        result = next_pass(self.satellite, self.observer, self.t0, self.min_elevation, 2.0)
        self.assertFalse(result.found)


class TestRiseSetTransit(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures."""
        self.satellite = Satellite(parse_tle(ISS_LINE1, ISS_LINE2, "ISS"))
        self.observer = ObserverGeometry.from_degrees(40.0, -75.0)
        self.t0 = self.satellite.elements.epoch_jd
        self.pass_result = next_pass(self.satellite, self.observer, self.t0, math.radians(10.0), 7.0)

    def test_ordering(self):
        rst = rise_set_transit(self.satellite, self.observer, self.pass_result)
        self.assertTrue(rst.converged)
        self.assertLess(rst.rise, rst.transit)
        self.assertLess(rst.transit, rst.set)
        self.assertLess(rst.set - rst.rise, 20.0 / 1440.0)
        self.assertGreaterEqual(rst.transit_elevation, math.radians(10.0))

    def test_rise_and_set_at_horizon(self):
        rst = rise_set_transit(self.satellite, self.observer, self.pass_result)
        for jd in (rst.rise, rst.set):
            ephem = self.satellite.ephemeris_at(jd, self.observer, PrecisionMode.FAST)
            self.assertAlmostEqual(ephem.elevation, -DEFAULT_HORIZON, delta=math.radians(0.1))

    def test_from_julian_day(self):
        """Starting below the horizon searches for the next pass first."""
        start = self.pass_result.jd - 30.0 / 1440.0
        below = self.satellite.ephemeris_at(start, self.observer, PrecisionMode.FAST)
        rst = rise_set_transit(self.satellite, self.observer, start)
        if below.elevation < 0.0:
            self.assertIsNotNone(rst.transit)
            self.assertGreater(rst.rise, start)

    def test_iteration_cap(self):
        with self.assertLogs("orbit_ephem.events", level="WARNING"):
            rst = rise_set_transit(self.satellite, self.observer, self.pass_result, max_iterations=5)
        self.assertIsNone(rst.rise)
        self.assertIsNone(rst.set)
        self.assertIsNone(rst.transit)
        self.assertEqual(rst.transit_elevation, 0.0)
        self.assertFalse(rst.converged)

    def test_no_pass(self):
        self.assertEqual(
            rise_set_transit(self.satellite, self.observer, PassResult.not_found()),
            RiseSetTransit.empty(),
        )


if __name__ == "__main__":
    unittest.main()
